import threading
from abc import ABC, abstractmethod
from typing import Any

from aiproj.domain.models.generation import ProviderOption

# Fallback metadata for providers that do not override get_metadata()
BASE_METADATA: dict[str, Any] = {
    "name": "unknown",
    "description": "No description available",
    "requires_config": False,
    "config_keys": [],
    "default_response_timeout": 300,
    "supports_system_prompt": False,
    "options": [],
}


class AIProvider(ABC):
    """A source of raw model text for a prompt.

    Providers know nothing about project structure: they return whatever
    the model said, and the parser decides what files it describes.
    Constructors take one config dict (the provider's block from config).
    """

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        """Describe the provider for ``aiproj providers`` and option lookup.

        Keys: name, description, requires_config, config_keys,
        default_response_timeout (seconds), supports_system_prompt and
        options (list of {id, display_name, description}).
        """
        return dict(BASE_METADATA)

    @classmethod
    def get_options(cls) -> list[ProviderOption]:
        return [ProviderOption(**option) for option in cls.get_metadata().get("options", [])]

    @abstractmethod
    def validate(self) -> None:
        """Check the provider can run here (binary installed, config complete).

        Raises:
            ProviderError: If it cannot
        """

    @abstractmethod
    def execute(
        self,
        prompt: str,
        option: ProviderOption,
        *,
        system_prompt: str | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        """Send ``prompt`` and return the model's raw reply.

        ``option`` is interpreted only by the provider (usually a model
        name). A blank reply is returned as-is; the caller decides what it
        means. When ``cancel_event`` is set mid-call the provider should stop
        its work (kill a subprocess, cancel a task) and raise
        ProviderInterrupted.

        Raises:
            ProviderError: Typed by AiProviderErrorType
        """
