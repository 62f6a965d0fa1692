"""Generation orchestration using the TransitionTable state machine.

Drives one request through provider call, parsing, file writing and
archiving, publishing every state on a GenerationStateStream. Failures are
returned as ``Failed`` states, never raised.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from aiproj.application.config_models import GeneratorConfig
from aiproj.application.error_mapping import (
    empty_response,
    from_archive_error,
    from_parser_error,
    from_provider_error,
    from_unexpected,
    from_write_error,
    invalid_request,
)
from aiproj.application.prompts import PromptService
from aiproj.application.providers import ProviderCancelled, ProviderExecutionService
from aiproj.application.storage import ArchiveError, ProjectWriteError, ProjectWriter, ZipArchiver
from aiproj.application.transitions import Command, TransitionTable
from aiproj.domain.constants import DEFAULT_ARCHIVE_DIR, DEFAULT_KEEP_ARCHIVES, DEFAULT_OUTPUT_DIR
from aiproj.domain.errors import ProviderError
from aiproj.domain.events import GenerationStateStream
from aiproj.domain.models.generation import (
    CallingAI,
    Completed,
    CreatingZip,
    Failed,
    GenerationError,
    GenerationRequest,
    GenerationResult,
    GenerationState,
    GenerationStateKind,
    Idle,
    Parsing,
    Preparing,
    WritingFiles,
)
from aiproj.domain.models.parser_result import ParserError
from aiproj.domain.parsing import ResponseParser
from aiproj.domain.providers.provider_factory import ProviderFactory

logger = logging.getLogger(__name__)

# States during which cancel() is honored; IDLE covers a run that has been
# accepted but has not published Preparing yet
_CANCELLABLE = frozenset({
    GenerationStateKind.IDLE,
    GenerationStateKind.PREPARING,
    GenerationStateKind.CALLING_AI,
})


class InvalidCommand(Exception):
    """Raised when a command is not valid for the current state."""

    def __init__(self, command: str, kind: GenerationStateKind):
        self.command = command
        self.kind = kind
        super().__init__(f"Command '{command}' is not valid from {kind.value}")


@dataclass
class GenerationOrchestrator:
    """Engine-owned generation pipeline.

    One generation may be in flight per instance. ``generate`` is rejected
    with InvalidCommand while a run is active, and after a run until
    ``reset()`` returns the orchestrator to Idle.
    """

    output_dir: Path = DEFAULT_OUTPUT_DIR
    archive_dir: Path = DEFAULT_ARCHIVE_DIR
    keep_archives: int | None = DEFAULT_KEEP_ARCHIVES
    check_free_space: bool = True
    parser: ResponseParser = field(default_factory=ResponseParser)
    provider_service: ProviderExecutionService = field(default_factory=ProviderExecutionService)
    prompt_service: PromptService = field(default_factory=PromptService)
    stream: GenerationStateStream = field(default_factory=GenerationStateStream)

    def __post_init__(self) -> None:
        self._writer = ProjectWriter(self.output_dir, check_free_space=self.check_free_space)
        self._archiver = ZipArchiver(self.archive_dir, keep_archives=self.keep_archives)
        # Reentrant: observers notified under the lock may call cancel()
        self._lock = threading.RLock()
        self._cancel_event = threading.Event()
        self._running = False

    @classmethod
    def from_config(
        cls,
        config: GeneratorConfig,
        stream: GenerationStateStream | None = None,
    ) -> "GenerationOrchestrator":
        return cls(
            output_dir=config.output_dir,
            archive_dir=config.archive_dir,
            keep_archives=config.keep_archives,
            check_free_space=config.check_free_space,
            provider_service=ProviderExecutionService(
                config.providers,
                response_timeout=config.response_timeout,
            ),
            prompt_service=PromptService(
                inject_system_prompt=config.prompt.inject_system_prompt,
                custom_system_prompt=config.prompt.custom_system_prompt,
                separator=config.prompt.separator,
            ),
            stream=stream or GenerationStateStream(),
        )

    @property
    def state(self) -> GenerationState:
        return self.stream.current

    # ========================================================================
    # Commands
    # ========================================================================

    def generate(self, request: GenerationRequest) -> GenerationState:
        """Run the whole pipeline for ``request`` and return the final state.

        Returns:
            Completed or Failed, or Idle when cancelled during the provider call

        Raises:
            InvalidCommand: If a run is active or a terminal state awaits reset()
        """
        with self._lock:
            kind = self.state.kind
            if self._running or TransitionTable.get_transition(kind, Command.GENERATE) is None:
                raise InvalidCommand(Command.GENERATE, kind)
            self._running = True
            self._cancel_event.clear()

        try:
            return self._run(request)
        except Exception as e:
            logger.exception("Unexpected failure during generation")
            return self._fail(from_unexpected(e))
        finally:
            with self._lock:
                self._running = False

    def cancel(self) -> bool:
        """Request cancellation of the active run.

        Only honored before the provider has answered; returns False when
        there is nothing to cancel.
        """
        with self._lock:
            if not self._running or self.state.kind not in _CANCELLABLE:
                return False
            self._cancel_event.set()
            logger.info("Cancellation requested")
            return True

    def reset(self) -> GenerationState:
        """Return a terminal orchestrator to Idle.

        Raises:
            InvalidCommand: If not in Completed or Failed
        """
        with self._lock:
            kind = self.state.kind
            if self._running or TransitionTable.get_transition(kind, Command.RESET) is None:
                raise InvalidCommand(Command.RESET, kind)
            return self._advance(Command.RESET, Idle())

    # ========================================================================
    # Pipeline
    # ========================================================================

    def _run(self, request: GenerationRequest) -> GenerationState:
        self._advance(Command.GENERATE, Preparing())

        error = self._validate(request)
        if error is not None:
            return self._fail(error)

        provider_key = request.provider.value
        try:
            provider = self.provider_service.create_provider(provider_key)
        except (KeyError, ValueError) as e:
            return self._fail(invalid_request(f"Cannot create provider '{provider_key}'", str(e)))

        prompt = self.prompt_service.prepare(request)
        logger.debug(f"Prompt prepared ({len(prompt)} chars)")

        if self._cancel_event.is_set():
            return self._cancelled()

        # === CallingAI ===
        self._advance(Command.CALL_AI, CallingAI(message=f"Requesting project from {provider_key}..."))
        try:
            raw = self.provider_service.execute(
                provider,
                prompt,
                request.option,
                cancel_event=self._cancel_event,
            )
        except ProviderCancelled:
            return self._cancelled()
        except ProviderError as e:
            return self._fail(from_provider_error(e))

        # A cancel() accepted during CallingAI wins over the reply
        with self._lock:
            if self._cancel_event.is_set():
                return self._cancelled()
            if not raw or not raw.strip():
                return self._fail(empty_response())
            logger.info(f"Received response from {provider_key} ({len(raw)} chars)")

            # === Parsing ===
            self._advance(Command.PARSE, Parsing(message="Parsing project structure..."))
        parsed = self.parser.parse(raw, request.project_name)
        if isinstance(parsed, ParserError):
            return self._fail(from_parser_error(parsed))
        structure = parsed.structure.with_provenance(provider_key, request.option.id)

        # === WritingFiles ===
        total = len(structure.files)
        self._advance(Command.WRITE, WritingFiles(progress=0, total=total))
        try:
            self._writer.ensure_space(structure)
            project_dir = self._writer.write(
                structure,
                on_progress=lambda done, count: self._advance(
                    Command.PROGRESS, WritingFiles(progress=done, total=count)
                ),
            )
        except ProjectWriteError as e:
            return self._fail(from_write_error(e))

        # === CreatingZip ===
        self._advance(Command.ARCHIVE, CreatingZip(message="Creating project archive..."))
        try:
            archive_path = self._archiver.create(structure, project_dir)
            archive_size = archive_path.stat().st_size
        except ArchiveError as e:
            return self._fail(from_archive_error(e))
        except OSError as e:
            return self._fail(from_archive_error(ArchiveError(str(e))))

        files_archived = len(structure.effective_files())
        result = GenerationResult(
            structure=structure,
            archive_path=archive_path,
            output_dir=project_dir,
            files_archived=files_archived,
            archive_size=archive_size,
            message=f"Generated {files_archived} files ({archive_size / 1024:.1f} KB compressed)",
        )
        logger.info(result.message)
        return self._advance(Command.COMPLETE, Completed(result=result))

    def _validate(self, request: GenerationRequest) -> GenerationError | None:
        if not request.prompt or not request.prompt.strip():
            return invalid_request("Prompt must not be blank")
        if not request.project_name or not request.project_name.strip():
            return invalid_request("Project name must not be blank")
        if not request.provider.value or not request.provider.value.strip():
            return invalid_request("No provider selected")
        if not ProviderFactory.is_registered(request.provider.value):
            available = ", ".join(ProviderFactory.list_providers())
            return invalid_request(
                f"Unknown provider: '{request.provider.value}'",
                f"Available providers: {available}",
            )
        if not request.option.id or not request.option.id.strip():
            return invalid_request("No provider option selected")
        return None

    # ========================================================================
    # State helpers
    # ========================================================================

    def _advance(self, command: str, state: GenerationState) -> GenerationState:
        current = self.state.kind
        target = TransitionTable.get_transition(current, command)
        if target is None or target != state.kind:
            raise InvalidCommand(command, current)
        self.stream.emit(state)
        return state

    def _fail(self, error: GenerationError) -> GenerationState:
        current = self.state
        if TransitionTable.get_transition(current.kind, Command.FAIL) is None:
            # Already terminal or back to Idle; nothing left to fail
            logger.warning(f"Dropping {error.error_type.value} in state {current.kind.value}: {error.message}")
            return current
        logger.error(f"Generation failed ({error.error_type.value}): {error.message}")
        return self._advance(Command.FAIL, Failed(error=error))

    def _cancelled(self) -> GenerationState:
        logger.info("Generation cancelled; returning to idle")
        return self._advance(Command.CANCEL, Idle())
