"""Gemini CLI provider.

Runs ``gemini -o stream-json -p <prompt>`` and rebuilds the reply from the
assistant ``message`` events of the NDJSON stream. Everything else in the
stream (init, tool and stats events) is ignored.
"""

import asyncio
import json
import logging
import shutil
import threading
import warnings
from collections.abc import Iterator
from typing import Any

from aiproj.domain.errors import AiProviderErrorType, ProviderError, ProviderInterrupted
from aiproj.domain.models.generation import ProviderOption
from aiproj.domain.providers.ai_provider import AIProvider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600
CANCEL_POLL_INTERVAL = 0.1  # seconds between stop event checks

# Option ids that leave model choice to the CLI's own settings
DEFAULT_OPTION_IDS = {"", "default"}

NOT_FOUND_MESSAGE = (
    "Gemini CLI not found. "
    "Install from: https://github.com/google-gemini/gemini-cli"
)

# First match wins; needles are compared against lower-cased stderr
_STDERR_CLASSIFIERS: list[tuple[tuple[str, ...], AiProviderErrorType, str]] = [
    (("auth", "login"), AiProviderErrorType.AUTHENTICATION_ERROR,
     "Gemini CLI authentication error. Run: gemini auth login"),
    (("429", "quota", "rate limit"), AiProviderErrorType.RATE_LIMITED,
     "Gemini CLI rate limited"),
    (("network", "enotfound", "econnrefused", "etimedout"), AiProviderErrorType.NETWORK_ERROR,
     "Gemini CLI network error"),
]


class GeminiCliProvider(AIProvider):
    """Gemini via the ``gemini`` command line tool.

    Requires the CLI on PATH and a prior ``gemini auth login``. The option id
    is passed as ``-m <model>`` unless it is ``default``.

    Configuration:
        - sandbox: Run the CLI with ``-s``
        - working_dir: Working directory for the subprocess
        - timeout: Process timeout in seconds (default: 600)
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = config or {}
        self._check_config()

        self._sandbox = bool(self.config.get("sandbox", False))
        self._working_dir = self.config.get("working_dir")
        self._timeout = self.config.get("timeout", DEFAULT_TIMEOUT)

    def _check_config(self) -> None:
        unknown = sorted(set(self.config) - set(self.get_metadata()["config_keys"]))
        if unknown:
            warnings.warn(
                f"Unknown GeminiCliProvider config keys ignored: {unknown}",
                UserWarning,
                stacklevel=3,
            )
        timeout = self.config.get("timeout")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be > 0")

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        return {
            "name": "gemini-cli",
            "description": "Gemini via the Gemini CLI subprocess",
            "requires_config": False,
            "config_keys": ["sandbox", "working_dir", "timeout"],
            "default_response_timeout": DEFAULT_TIMEOUT,
            "supports_system_prompt": False,
            "options": [
                {"id": "gemini-2.5-pro", "display_name": "Gemini 2.5 Pro", "description": "Highest quality"},
                {"id": "gemini-2.5-flash", "display_name": "Gemini 2.5 Flash", "description": "Fast and inexpensive"},
            ],
        }

    def validate(self) -> None:
        if shutil.which("gemini") is None:
            raise ProviderError(NOT_FOUND_MESSAGE, AiProviderErrorType.PROVIDER_ERROR)

    def execute(
        self,
        prompt: str,
        option: ProviderOption,
        *,
        system_prompt: str | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        # No system prompt flag on the CLI; prepend it instead
        if system_prompt:
            prompt = f"{system_prompt}\n\n{prompt}"
        args = self._build_args(option) + ["-p", prompt]
        stdout = asyncio.run(self._run_cli(args, timeout or self._timeout, cancel_event))
        return self._parse_ndjson_stream(stdout)

    def _build_args(self, option: ProviderOption) -> list[str]:
        args = ["-o", "stream-json"]
        if option.id not in DEFAULT_OPTION_IDS:
            args += ["-m", option.id]
        if self._sandbox:
            args.append("-s")
        return args

    async def _run_cli(
        self,
        args: list[str],
        timeout: float,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        """Run the CLI to completion and return stdout.

        The process is killed when ``cancel_event`` is set or ``timeout``
        passes.

        Raises:
            ProviderInterrupted: If ``cancel_event`` was set
            ProviderError: On timeout, missing binary or non-zero exit
        """
        try:
            process = await asyncio.create_subprocess_exec(
                "gemini",
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._working_dir,
            )
        except FileNotFoundError as e:
            raise ProviderError(NOT_FOUND_MESSAGE, AiProviderErrorType.PROVIDER_ERROR) from e

        try:
            stdout, stderr = await self._communicate(process, timeout, cancel_event)
        except asyncio.TimeoutError as e:
            process.kill()
            raise ProviderError(
                f"Gemini CLI timed out after {timeout}s. Consider increasing timeout config.",
                AiProviderErrorType.TIMEOUT,
            ) from e

        stderr_text = stderr.decode(errors="replace") if stderr else ""
        if stderr_text:
            logger.debug(f"Gemini CLI stderr: {stderr_text}")
        if process.returncode != 0:
            raise self._classify_failure(process.returncode, stderr_text)
        return stdout

    @staticmethod
    async def _communicate(
        process: asyncio.subprocess.Process,
        timeout: float,
        cancel_event: threading.Event | None,
    ) -> tuple[bytes, bytes]:
        task = asyncio.ensure_future(process.communicate())
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                task.cancel()
                raise asyncio.TimeoutError()
            done, _ = await asyncio.wait({task}, timeout=min(CANCEL_POLL_INTERVAL, remaining))
            if done:
                return task.result()
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Stop requested; killing Gemini CLI")
                process.kill()
                task.cancel()
                raise ProviderInterrupted("Gemini CLI stopped by caller")

    @staticmethod
    def _iter_events(stdout: bytes) -> Iterator[dict[str, Any]]:
        bad_lines = 0
        for line in stdout.decode(errors="replace").splitlines():
            if not line.strip():
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                bad_lines += 1
                logger.debug(f"Skipping non-JSON line: {line[:50]!r}")
                continue
            if isinstance(event, dict):
                yield event
        if bad_lines:
            logger.warning(f"Gemini CLI emitted {bad_lines} malformed JSON line(s)")

    def _parse_ndjson_stream(self, stdout: bytes) -> str:
        """Join the content of every assistant message event."""
        return "".join(
            event.get("content") or ""
            for event in self._iter_events(stdout)
            if event.get("type") == "message" and event.get("role") == "assistant"
        )

    @staticmethod
    def _classify_failure(returncode: int, stderr: str) -> ProviderError:
        lowered = stderr.lower()
        for needles, error_type, summary in _STDERR_CLASSIFIERS:
            if any(needle in lowered for needle in needles):
                return ProviderError(f"{summary}\n{stderr}", error_type)
        if returncode == 127:
            return ProviderError(NOT_FOUND_MESSAGE, AiProviderErrorType.PROVIDER_ERROR)
        return ProviderError(
            f"Gemini CLI failed (exit {returncode}): {stderr}",
            AiProviderErrorType.PROVIDER_ERROR,
        )
