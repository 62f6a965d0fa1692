"""Replay provider: answers every prompt with a previously saved response.

Useful for offline runs and for reproducing parser behavior on a response
that misbehaved in production.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Any

from aiproj.domain.errors import AiProviderErrorType, ProviderError, ProviderInterrupted
from aiproj.domain.models.generation import ProviderOption
from aiproj.domain.providers.ai_provider import AIProvider

logger = logging.getLogger(__name__)


class ReplayProvider(AIProvider):
    """Returns the contents of ``response_file`` regardless of the prompt.

    Configuration:
        - response_file: Path to a saved raw model response (required)
        - delay: Seconds to wait before answering (default: 0)
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = config or {}
        response_file = self.config.get("response_file")
        self._response_file = Path(response_file) if response_file else None
        self._delay = float(self.config.get("delay", 0))
        if self._delay < 0:
            raise ValueError("delay must be >= 0")

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        """Return provider metadata."""
        return {
            "name": "replay",
            "description": "Replays a saved response file (offline)",
            "requires_config": True,
            "config_keys": ["response_file", "delay"],
            "default_response_timeout": 60,
            "supports_system_prompt": False,
            "options": [
                {"id": "default", "display_name": "Saved response", "description": "Return the file as-is"},
            ],
        }

    def validate(self) -> None:
        if self._response_file is None:
            raise ProviderError(
                "replay provider requires a 'response_file' setting",
                AiProviderErrorType.INVALID_REQUEST,
            )
        if not self._response_file.is_file():
            raise ProviderError(
                f"Response file not found: {self._response_file}",
                AiProviderErrorType.INVALID_REQUEST,
            )

    def execute(
        self,
        prompt: str,
        option: ProviderOption,
        *,
        system_prompt: str | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        self.validate()
        if self._delay:
            if cancel_event is None:
                time.sleep(self._delay)
            elif cancel_event.wait(self._delay):
                raise ProviderInterrupted("Replay stopped by caller")
        logger.debug(f"Replaying response from {self._response_file}")
        try:
            # newline="" keeps \r\n line endings byte-exact
            with open(self._response_file, encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ProviderError(
                f"Could not read response file {self._response_file}: {e}",
                AiProviderErrorType.PROVIDER_ERROR,
            ) from e
