import logging
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

import click
from pydantic import BaseModel

from aiproj.application.config_loader import ConfigLoadError, load_generator_config
from aiproj.application.generation_orchestrator import GenerationOrchestrator
from aiproj.domain.errors import ProviderError
from aiproj.domain.events import GenerationStateStream, StderrStateObserver
from aiproj.domain.models.generation import (
    Completed,
    Failed,
    GenerationRequest,
    GenerationState,
    ProviderIdentifier,
)
from aiproj.domain.models.parser_result import ParserError
from aiproj.domain.parsing import ResponseParser
from aiproj.domain.providers import ProviderFactory
from aiproj.interface.cli.output_models import (
    FileSummary,
    GenerateOutput,
    OptionSummary,
    ParseOutput,
    ProviderDetail,
    ProviderSummary,
    ProvidersOutput,
    ValidateOutput,
    ValidationResult,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 3

# How often the foreground thread wakes up to notice Ctrl-C
_JOIN_INTERVAL = 0.1


def _json_emit(model: BaseModel) -> None:
    # Single-line JSON, omit None fields.
    click.echo(model.model_dump_json(exclude_none=True), nl=True)


def _get_json_mode(ctx: click.Context) -> bool:
    obj = ctx.obj or {}
    return bool(obj.get("json", False))


def _configure_logging(ctx: click.Context, level: str = "WARNING") -> None:
    obj = ctx.obj or {}
    logging.basicConfig(
        level=logging.DEBUG if obj.get("verbose") else getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(ctx: click.Context, output: BaseModel, message: str, exit_code: int = EXIT_FAILED) -> None:
    if _get_json_mode(ctx):
        _json_emit(output)
        raise click.exceptions.Exit(exit_code)
    raise click.ClickException(message)


def _run_in_foreground(orchestrator: GenerationOrchestrator, request: GenerationRequest) -> GenerationState:
    """Run a generation on a worker thread so Ctrl-C can request cancellation."""
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="aiproj-generate") as pool:
        future = pool.submit(orchestrator.generate, request)
        try:
            while not future.done():
                wait([future], timeout=_JOIN_INTERVAL)
        except KeyboardInterrupt:
            if orchestrator.cancel():
                click.echo("Cancelling...", err=True)
            else:
                click.echo("Too late to cancel; waiting for the run to finish...", err=True)
        return future.result()


@click.group(help="Generate complete projects from a single AI response.")
@click.option("--json", "json_output", is_flag=True, help="Emit machine-readable JSON on stdout.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging on stderr.")
@click.pass_context
def cli(ctx: click.Context, json_output: bool, verbose: bool) -> None:
    ctx.ensure_object(dict)
    ctx.obj["json"] = bool(json_output)
    ctx.obj["verbose"] = bool(verbose)


@cli.command("generate")
@click.argument("prompt", type=str)
@click.option("--name", "project_name", required=True, type=str, help="Project name (sanitized into the root).")
@click.option("--provider", "provider_key", required=False, type=str, help="Provider key (default from config).")
@click.option("--option", "option_id", required=False, type=str, help="Provider option, e.g. a model alias.")
@click.option("--context", "additional_context", required=False, type=str, help="Extra context for the prompt.")
@click.option(
    "--response-file",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Replay a saved response instead of calling a live provider.",
)
@click.option("--output-dir", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option("--archive-dir", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option("--timeout", "response_timeout", required=False, type=float, help="Provider response timeout in seconds.")
@click.option("--no-system-prompt", is_flag=True, help="Send the project prompt without the file format instructions.")
@click.option("--events/--no-events", default=True, help="Emit state changes to stderr.")
@click.pass_context
def generate_cmd(
    ctx: click.Context,
    prompt: str,
    project_name: str,
    provider_key: str | None,
    option_id: str | None,
    additional_context: str | None,
    response_file: Path | None,
    output_dir: Path | None,
    archive_dir: Path | None,
    response_timeout: float | None,
    no_system_prompt: bool,
    events: bool,
) -> None:
    """Ask a provider for a project and write it to disk plus a zip archive.

    Exit codes: 0 completed, 1 failed, 3 cancelled.

    Examples:
        aiproj generate "A todo list REST API" --name todo-api
        aiproj generate "CLI calculator" --name calc --response-file saved.txt
    """
    try:
        overrides: dict = {
            "provider": provider_key,
            "option": option_id,
            "output_dir": output_dir,
            "archive_dir": archive_dir,
            "response_timeout": response_timeout,
        }
        if no_system_prompt:
            overrides["prompt"] = {"inject_system_prompt": False}
        if response_file is not None:
            overrides["provider"] = "replay"
            overrides["providers"] = {"replay": {"response_file": str(response_file)}}

        config = load_generator_config(
            project_root=Path.cwd(),
            user_home=Path.home(),
            overrides=overrides,
        )
        _configure_logging(ctx, config.log_level)

        stream = GenerationStateStream()
        if events and not _get_json_mode(ctx):
            stream.subscribe(StderrStateObserver())

        # A configured option belongs to the configured provider only
        configured_option = config.option if not (provider_key or response_file) else option_id

        orchestrator = GenerationOrchestrator.from_config(config, stream=stream)
        request = GenerationRequest(
            prompt=prompt,
            provider=ProviderIdentifier(config.provider),
            option=ProviderFactory.resolve_option(config.provider, configured_option),
            project_name=project_name,
            additional_context=additional_context,
        )

        state = _run_in_foreground(orchestrator, request)

        if isinstance(state, Completed):
            result = state.result
            if _get_json_mode(ctx):
                _json_emit(
                    GenerateOutput(
                        exit_code=EXIT_OK,
                        state=state.kind.value,
                        project_root=result.structure.root,
                        archive_path=str(result.archive_path),
                        output_dir=str(result.output_dir),
                        files_archived=result.files_archived,
                        archive_size=result.archive_size,
                        message=result.message,
                    )
                )
                raise click.exceptions.Exit(EXIT_OK)
            click.echo(result.message)
            click.echo(f"Project: {result.output_dir}")
            click.echo(f"Archive: {result.archive_path}")
            return

        if isinstance(state, Failed):
            error = state.error
            message = f"{error.error_type.value}: {error.message}"
            if error.details and not _get_json_mode(ctx):
                message = f"{message}\n{error.details}"
            _fail(
                ctx,
                GenerateOutput(
                    exit_code=EXIT_FAILED,
                    state=state.kind.value,
                    error=error.message,
                    error_type=error.error_type.value,
                    details=error.details,
                    failed_index=error.failed_index,
                ),
                message,
            )

        # Back to Idle: the run was cancelled before the provider answered
        if _get_json_mode(ctx):
            _json_emit(GenerateOutput(exit_code=EXIT_CANCELLED, state=state.kind.value, message="cancelled"))
        else:
            click.echo("Generation cancelled.", err=True)
        raise click.exceptions.Exit(EXIT_CANCELLED)

    except click.exceptions.Exit:
        raise
    except click.ClickException:
        raise
    except ConfigLoadError as e:
        _fail(ctx, GenerateOutput(exit_code=EXIT_FAILED, error=str(e)), str(e))
    except Exception as e:
        logger.debug("generate failed", exc_info=True)
        if _get_json_mode(ctx):
            _json_emit(GenerateOutput(exit_code=EXIT_FAILED, error=str(e)))
            raise click.exceptions.Exit(EXIT_FAILED)
        raise click.ClickException(str(e)) from e


@cli.command("parse")
@click.argument("response_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--name", "project_name", required=False, type=str, help="Project name hint (default: file stem).")
@click.pass_context
def parse_cmd(ctx: click.Context, response_file: Path, project_name: str | None) -> None:
    """Parse a saved AI response and list the files it declares.

    Nothing is written; useful for checking which grammar a response uses.
    """
    _configure_logging(ctx)
    try:
        # newline="" keeps line endings exactly as saved
        with open(response_file, encoding="utf-8", newline="") as f:
            raw = f.read()

        result = ResponseParser().parse(raw, project_name or response_file.stem)

        if isinstance(result, ParserError):
            message = result.message
            if result.line_number is not None:
                message = f"{message} (line {result.line_number})"
            _fail(
                ctx,
                ParseOutput(
                    exit_code=EXIT_FAILED,
                    error=result.message,
                    grammar=result.grammar.value if result.grammar else None,
                    details=result.details,
                    line_number=result.line_number,
                ),
                message,
            )

        structure = result.structure
        files = [FileSummary(path=f.path, size=f.size) for f in structure.files]

        if _get_json_mode(ctx):
            _json_emit(
                ParseOutput(
                    exit_code=EXIT_OK,
                    grammar=result.grammar.value,
                    root=structure.root,
                    files=files,
                    total_size=sum(f.size for f in files),
                )
            )
            raise click.exceptions.Exit(EXIT_OK)

        click.echo(f"Root: {structure.root}")
        click.echo(f"Grammar: {result.grammar.value}")
        click.echo(f"{'SIZE':>10}  PATH")
        for f in files:
            click.echo(f"{f.size:>10}  {f.path}")
        click.echo(f"\n{len(files)} files")

    except click.exceptions.Exit:
        raise
    except click.ClickException:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(ParseOutput(exit_code=EXIT_FAILED, error=str(e)))
            raise click.exceptions.Exit(EXIT_FAILED)
        raise click.ClickException(str(e)) from e


@cli.command("providers")
@click.argument("provider_name", type=str, required=False)
@click.pass_context
def providers_cmd(ctx: click.Context, provider_name: str | None) -> None:
    """List available AI providers or show details for a specific provider."""
    try:
        if provider_name:
            metadata = ProviderFactory.get_metadata(provider_name)
            if metadata is None:
                available = ", ".join(ProviderFactory.list_providers())
                error_msg = f"Provider '{provider_name}' not found. Available: {available}"
                _fail(ctx, ProvidersOutput(exit_code=EXIT_FAILED, error=error_msg), error_msg)

            provider_detail = ProviderDetail(
                name=metadata["name"],
                description=metadata["description"],
                requires_config=metadata.get("requires_config", False),
                config_keys=metadata.get("config_keys", []),
                default_response_timeout=metadata.get("default_response_timeout"),
                options=[OptionSummary(**o) for o in metadata.get("options", [])],
            )

            if _get_json_mode(ctx):
                _json_emit(ProvidersOutput(exit_code=EXIT_OK, provider=provider_detail))
                raise click.exceptions.Exit(EXIT_OK)

            click.echo(f"Provider: {provider_detail.name}")
            click.echo(f"Description: {provider_detail.description}")
            requires_str = "yes" if provider_detail.requires_config else "no"
            click.echo(f"Requires Config: {requires_str}")
            if provider_detail.config_keys:
                click.echo(f"Config Keys: {', '.join(provider_detail.config_keys)}")
            if provider_detail.default_response_timeout is not None:
                click.echo(f"Response Timeout: {provider_detail.default_response_timeout}s")
            if provider_detail.options:
                click.echo("Options:")
                for o in provider_detail.options:
                    click.echo(f"  {o.id:<18}{o.description}")

        else:
            providers_list = [
                ProviderSummary(
                    name=m["name"],
                    description=m["description"],
                    requires_config=m.get("requires_config", False),
                )
                for m in ProviderFactory.get_all_metadata()
            ]

            if _get_json_mode(ctx):
                _json_emit(ProvidersOutput(exit_code=EXIT_OK, providers=providers_list))
                raise click.exceptions.Exit(EXIT_OK)

            if not providers_list:
                click.echo("No providers registered.")
            else:
                click.echo(f"{'PROVIDER':<14}{'DESCRIPTION':<58}{'CONFIG'}")
                for p in providers_list:
                    config_str = "required" if p.requires_config else "none"
                    click.echo(f"{p.name:<14}{p.description:<58}{config_str}")

    except click.exceptions.Exit:
        raise
    except click.ClickException:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(ProvidersOutput(exit_code=EXIT_FAILED, error=str(e)))
            raise click.exceptions.Exit(EXIT_FAILED)
        raise click.ClickException(str(e)) from e


def _validate_provider(key: str, providers_config: dict) -> ValidationResult:
    """Validate a single AI provider with its configured settings."""
    try:
        provider = ProviderFactory.create(key, providers_config.get(key))
        provider.validate()
        return ValidationResult(provider_key=key, passed=True)
    except ProviderError as e:
        return ValidationResult(provider_key=key, passed=False, error=str(e))
    except KeyError:
        return ValidationResult(provider_key=key, passed=False, error="Not registered")
    except ValueError as e:
        return ValidationResult(provider_key=key, passed=False, error=f"Invalid config: {e}")


@cli.command("validate")
@click.argument("provider_key", required=False)
@click.pass_context
def validate_cmd(ctx: click.Context, provider_key: str | None) -> None:
    """Check that providers are installed and configured.

    Examples:
        aiproj validate claude-code
        aiproj validate  # validates all providers
    """
    try:
        config = load_generator_config(project_root=Path.cwd(), user_home=Path.home())
        _configure_logging(ctx, config.log_level)

        keys = [provider_key] if provider_key else ProviderFactory.list_providers()
        results = [_validate_provider(key, config.providers) for key in keys]

        all_passed = all(r.passed for r in results)
        exit_code = EXIT_OK if all_passed else EXIT_FAILED

        if _get_json_mode(ctx):
            _json_emit(ValidateOutput(exit_code=exit_code, results=results, all_passed=all_passed))
            raise click.exceptions.Exit(exit_code)

        for r in results:
            status = "OK" if r.passed else "FAILED"
            click.echo(f"  {r.provider_key}: {status}")
            if r.error:
                click.echo(f"    {r.error}")

        passed = sum(1 for r in results if r.passed)
        click.echo(f"\n{passed} of {len(results)} providers ready.")

        if not all_passed:
            raise click.exceptions.Exit(EXIT_FAILED)

    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(ValidateOutput(exit_code=EXIT_FAILED, error=str(e)))
            raise click.exceptions.Exit(EXIT_FAILED)
        raise click.ClickException(str(e)) from e
