"""Claude Code provider using the Claude Agent SDK.

Runs text-only: ``allowed_tools`` is empty, so the model cannot touch the
filesystem and must answer with the whole project in its reply.
"""

import asyncio
import logging
import shutil
import threading
import warnings
from typing import Any

import claude_agent_sdk
from claude_agent_sdk import AssistantMessage, ClaudeAgentOptions, TextBlock

from aiproj.domain.errors import AiProviderErrorType, ProviderError, ProviderInterrupted
from aiproj.domain.models.generation import ProviderOption
from aiproj.domain.providers.ai_provider import AIProvider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600  # large projects take a while
CANCEL_POLL_INTERVAL = 0.1  # seconds between stop event checks

# Option ids that let the CLI use its configured model
DEFAULT_OPTION_IDS = {"", "default"}

CLI_NOT_FOUND_MESSAGE = (
    "Claude Code CLI not found. "
    "Install from: https://docs.anthropic.com/claude-code"
)

# SDK exception class name -> (error type, message prefix)
_SDK_ERRORS_BY_NAME: dict[str, tuple[AiProviderErrorType, str]] = {
    "CLIConnectionError": (AiProviderErrorType.NETWORK_ERROR, "Could not connect to Claude Code"),
    "CLIJSONDecodeError": (AiProviderErrorType.PROVIDER_ERROR, "Invalid response from Claude Code CLI (malformed JSON)"),
}

# Checked against the lower-cased message when the class name says nothing useful
_SDK_ERRORS_BY_TEXT: list[tuple[tuple[str, ...], AiProviderErrorType, str]] = [
    (("auth", "login", "api key"), AiProviderErrorType.AUTHENTICATION_ERROR,
     "Claude Code authentication error. Run: claude login"),
    (("rate limit", "429", "overloaded"), AiProviderErrorType.RATE_LIMITED, "Claude Code rate limited"),
    (("timeout", "timed out"), AiProviderErrorType.TIMEOUT, "Claude Code timed out"),
]


class ClaudeCodeProvider(AIProvider):
    """Claude through the Agent SDK, which drives the ``claude`` CLI.

    Requires the Claude Code CLI, authenticated with ``claude login``.
    The option id is the model alias (``sonnet``, ``opus``, ``haiku``).

    Configuration:
        - max_turns: Maximum agent iterations (default: 1)
        - working_dir: Working directory for the CLI
        - max_output_tokens: Output token limit, passed via environment
        - max_budget_usd: Cost limit per invocation, passed as CLI flag
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = config or {}
        self._check_config()

        self._max_turns = self.config.get("max_turns", 1)
        self._working_dir = self.config.get("working_dir")
        self._max_output_tokens = self.config.get("max_output_tokens")
        self._max_budget_usd = self.config.get("max_budget_usd")

    def _check_config(self) -> None:
        unknown = sorted(set(self.config) - set(self.get_metadata()["config_keys"]))
        if unknown:
            warnings.warn(
                f"Unknown ClaudeCodeProvider config keys ignored: {unknown}",
                UserWarning,
                stacklevel=3,
            )

        limits = (
            ("max_turns", 1, "max_turns must be >= 1"),
            ("max_output_tokens", 1, "max_output_tokens must be >= 1"),
        )
        for key, minimum, message in limits:
            value = self.config.get(key)
            if value is not None and value < minimum:
                raise ValueError(message)

        budget = self.config.get("max_budget_usd")
        if budget is not None and budget <= 0:
            raise ValueError("max_budget_usd must be > 0")

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        return {
            "name": "claude-code",
            "description": "Claude via the Claude Agent SDK (text only, no tools)",
            "requires_config": False,
            "config_keys": ["max_turns", "working_dir", "max_output_tokens", "max_budget_usd"],
            "default_response_timeout": DEFAULT_TIMEOUT,
            "supports_system_prompt": True,
            "options": [
                {"id": "sonnet", "display_name": "Claude Sonnet", "description": "Balanced speed and quality"},
                {"id": "opus", "display_name": "Claude Opus", "description": "Most capable, slowest"},
                {"id": "haiku", "display_name": "Claude Haiku", "description": "Fastest, for small projects"},
            ],
        }

    def validate(self) -> None:
        if shutil.which("claude") is None:
            raise ProviderError(CLI_NOT_FOUND_MESSAGE, AiProviderErrorType.PROVIDER_ERROR)

    def execute(
        self,
        prompt: str,
        option: ProviderOption,
        *,
        system_prompt: str | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        """Stream the reply from the SDK and return its text blocks joined.

        Raises:
            ProviderInterrupted: If ``cancel_event`` is set before the reply ends
            ProviderError: If the SDK fails or the response times out
        """
        limit = timeout or DEFAULT_TIMEOUT
        try:
            return asyncio.run(
                self._collect_until_stopped(prompt, option, system_prompt, limit, cancel_event)
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(
                f"Claude Code timed out after {limit}s",
                AiProviderErrorType.TIMEOUT,
            ) from e

    async def _collect_until_stopped(
        self,
        prompt: str,
        option: ProviderOption,
        system_prompt: str | None,
        limit: float,
        cancel_event: threading.Event | None,
    ) -> str:
        task = asyncio.ensure_future(self._collect_text(prompt, option, system_prompt))
        loop = asyncio.get_running_loop()
        deadline = loop.time() + limit
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                task.cancel()
                raise asyncio.TimeoutError()
            done, _ = await asyncio.wait({task}, timeout=min(CANCEL_POLL_INTERVAL, remaining))
            if done:
                return task.result()
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Stop requested; cancelling Claude Code query")
                task.cancel()
                raise ProviderInterrupted("Claude Code query stopped by caller")

    async def _collect_text(self, prompt: str, option: ProviderOption, system_prompt: str | None) -> str:
        options = self._build_options(option, system_prompt)
        chunks: list[str] = []
        try:
            async for message in claude_agent_sdk.query(prompt=prompt, options=options):
                if not isinstance(message, AssistantMessage):
                    continue
                chunks.extend(block.text for block in message.content if isinstance(block, TextBlock))
        except Exception as e:
            raise self._wrap_sdk_error(e) from e

        logger.debug(f"Claude Code returned {len(chunks)} text block(s)")
        return "".join(chunks)

    def _build_options(self, option: ProviderOption, system_prompt: str | None) -> ClaudeAgentOptions:
        env: dict[str, str] = {}
        if self._max_output_tokens is not None:
            env["CLAUDE_CODE_MAX_OUTPUT_TOKENS"] = str(self._max_output_tokens)

        extra_args: dict[str, str | None] = {}
        if self._max_budget_usd is not None:
            extra_args["--max-budget-usd"] = str(self._max_budget_usd)

        return ClaudeAgentOptions(
            model=None if option.id in DEFAULT_OPTION_IDS else option.id,
            allowed_tools=[],
            max_turns=self._max_turns,
            cwd=self._working_dir,
            system_prompt=system_prompt,
            env=env,
            extra_args=extra_args,
        )

    @staticmethod
    def _wrap_sdk_error(error: Exception) -> ProviderError:
        """Map an SDK exception to a typed ProviderError."""
        name = type(error).__name__
        if name == "CLINotFoundError":
            return ProviderError(CLI_NOT_FOUND_MESSAGE, AiProviderErrorType.PROVIDER_ERROR)
        if name in _SDK_ERRORS_BY_NAME:
            error_type, prefix = _SDK_ERRORS_BY_NAME[name]
            return ProviderError(f"{prefix}: {error}", error_type)

        lowered = str(error).lower()
        for needles, error_type, prefix in _SDK_ERRORS_BY_TEXT:
            if any(needle in lowered for needle in needles):
                return ProviderError(f"{prefix}: {error}", error_type)

        if name == "ProcessError":
            return ProviderError(f"Claude Code process failed: {error}", AiProviderErrorType.PROVIDER_ERROR)
        if name == "TimeoutError":
            return ProviderError(f"Claude Code timed out: {error}", AiProviderErrorType.TIMEOUT)
        return ProviderError(f"Claude Agent SDK error ({name}): {error}", AiProviderErrorType.UNKNOWN)
