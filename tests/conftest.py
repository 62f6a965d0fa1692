import threading
from pathlib import Path
from typing import Any

import pytest

from aiproj.application.generation_orchestrator import GenerationOrchestrator
from aiproj.application.providers import ProviderExecutionService
from aiproj.domain.errors import ProviderInterrupted
from aiproj.domain.events import GenerationStateStream
from aiproj.domain.models.generation import GenerationRequest, ProviderIdentifier, ProviderOption
from aiproj.domain.providers.ai_provider import AIProvider
from aiproj.domain.providers.provider_factory import ProviderFactory


DELIMITED_RESPONSE = (
    "Here is your project.\n"
    ">>> FILE: README.md\n"
    "# Demo\n"
    ">>> FILE: src/main.py\n"
    "print('hi')\n"
)


class ScriptedProvider(AIProvider):
    """Fake provider whose behavior comes entirely from its config.

    Config:
        - response: Text to return
        - error: Exception to raise instead
        - release: threading.Event to wait on before answering; the passed
          timeout is ignored so only the caller's deadline ends the wait
        - calls: list that receives (prompt, option_id) per call
        - stopped: threading.Event set when the call is stopped by its cancel event
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        return {
            "name": "scripted",
            "description": "Scripted provider for testing",
            "requires_config": False,
            "config_keys": ["response", "error", "release", "calls", "stopped"],
            "default_response_timeout": 5,
            "supports_system_prompt": False,
            "options": [
                {"id": "fast", "display_name": "Fast", "description": "First option"},
                {"id": "slow", "display_name": "Slow", "description": "Second option"},
            ],
        }

    def validate(self) -> None:
        pass

    def execute(
        self,
        prompt: str,
        option: ProviderOption,
        *,
        system_prompt: str | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        calls = self.config.get("calls")
        if calls is not None:
            calls.append((prompt, option.id))
        release = self.config.get("release")
        if release is not None:
            while not release.wait(0.01):
                if cancel_event is not None and cancel_event.is_set():
                    stopped = self.config.get("stopped")
                    if stopped is not None:
                        stopped.set()
                    raise ProviderInterrupted()
        error = self.config.get("error")
        if error is not None:
            raise error
        return self.config.get("response", "")


@pytest.fixture(autouse=True)
def _register_test_providers():
    """Register the scripted provider and restore the registry afterward."""
    original_registry = dict(ProviderFactory._registry)
    ProviderFactory.register("scripted", ScriptedProvider)

    yield

    ProviderFactory._registry.clear()
    ProviderFactory._registry.update(original_registry)


@pytest.fixture
def make_orchestrator(tmp_path: Path):
    """Build an orchestrator writing under tmp_path with scripted provider config."""

    def _make(**scripted_config: Any) -> GenerationOrchestrator:
        return GenerationOrchestrator(
            output_dir=tmp_path / "projects",
            archive_dir=tmp_path / "archives",
            check_free_space=False,
            provider_service=ProviderExecutionService(
                {"scripted": scripted_config},
                poll_interval=0.01,
            ),
            stream=GenerationStateStream(),
        )

    return _make


@pytest.fixture
def make_request():
    def _make(**overrides: Any) -> GenerationRequest:
        fields: dict[str, Any] = {
            "prompt": "A tiny demo app",
            "provider": ProviderIdentifier("scripted"),
            "option": ProviderOption(id="fast"),
            "project_name": "Demo",
        }
        fields.update(overrides)
        return GenerationRequest(**fields)

    return _make


@pytest.fixture
def release_event():
    """Event a scripted provider blocks on; always set at teardown."""
    event = threading.Event()
    yield event
    event.set()
