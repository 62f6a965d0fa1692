"""Unit tests for ProviderFactory."""

from typing import Any

import pytest

from aiproj.domain.models.generation import ProviderOption
from aiproj.domain.providers import ProviderFactory
from aiproj.domain.providers.ai_provider import AIProvider


class MockAIProvider(AIProvider):
    """Mock AI provider for testing."""

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        return {
            "name": "mock-ai-provider",
            "description": "Mock AI provider for testing",
            "requires_config": False,
            "config_keys": ["api_key"],
            "default_response_timeout": 60,
            "options": [{"id": "small", "display_name": "Small", "description": ""}],
        }

    def validate(self) -> None:
        pass

    def execute(self, prompt, option, *, system_prompt=None, timeout=None, cancel_event=None) -> str:
        return "mock response"


class TestProviderFactory:
    """Tests for ProviderFactory."""

    def setup_method(self):
        """Save and clear the registry before each test."""
        self._original_registry = dict(ProviderFactory._registry)
        ProviderFactory._registry.clear()

    def teardown_method(self):
        """Restore the registry after each test."""
        ProviderFactory._registry.clear()
        ProviderFactory._registry.update(self._original_registry)

    def test_register_and_create(self):
        ProviderFactory.register("mock", MockAIProvider)

        provider = ProviderFactory.create("mock")

        assert isinstance(provider, MockAIProvider)
        assert provider.config == {}

    def test_create_passes_config_dict(self):
        ProviderFactory.register("mock", MockAIProvider)

        provider = ProviderFactory.create("mock", {"api_key": "test-key"})

        assert provider.config == {"api_key": "test-key"}

    def test_create_unknown_raises_keyerror(self):
        ProviderFactory.register("mock", MockAIProvider)

        with pytest.raises(KeyError) as exc_info:
            ProviderFactory.create("unknown")

        assert "unknown" in str(exc_info.value)
        assert "mock" in str(exc_info.value)

    def test_list_and_is_registered(self):
        ProviderFactory.register("a", MockAIProvider)
        ProviderFactory.register("b", MockAIProvider)

        assert {"a", "b"} <= set(ProviderFactory.list_providers())
        assert ProviderFactory.is_registered("a")
        assert not ProviderFactory.is_registered("c")

    def test_metadata_lookup(self):
        ProviderFactory.register("mock", MockAIProvider)

        assert ProviderFactory.get_metadata("mock")["name"] == "mock-ai-provider"
        assert ProviderFactory.get_metadata("missing") is None
        assert "mock-ai-provider" in [m["name"] for m in ProviderFactory.get_all_metadata()]

    def test_options_from_metadata(self):
        assert MockAIProvider.get_options() == [ProviderOption(id="small", display_name="Small")]

    def test_register_rejects_blank_key_and_non_provider(self):
        with pytest.raises(ValueError):
            ProviderFactory.register("  ", MockAIProvider)
        with pytest.raises(TypeError):
            ProviderFactory.register("bad", object)  # type: ignore[arg-type]

        assert ProviderFactory.list_providers() == []

    def test_resolve_option_defaults_to_first_advertised(self):
        ProviderFactory.register("mock", MockAIProvider)

        option = ProviderFactory.resolve_option("mock")

        assert option == ProviderOption(id="small", display_name="Small")

    def test_resolve_option_matches_advertised_id(self):
        ProviderFactory.register("mock", MockAIProvider)

        assert ProviderFactory.resolve_option("mock", "small").display_name == "Small"

    def test_resolve_option_passes_unknown_ids_through(self):
        ProviderFactory.register("mock", MockAIProvider)

        assert ProviderFactory.resolve_option("mock", "custom-model") == ProviderOption(id="custom-model")

    def test_resolve_option_without_advertised_options(self):
        assert ProviderFactory.resolve_option("missing").id == "default"


def test_builtin_providers_registered():
    for key in ["claude-code", "gemini-cli", "replay"]:
        assert ProviderFactory.is_registered(key)
        metadata = ProviderFactory.get_metadata(key)
        assert metadata["name"] == key
        assert metadata["default_response_timeout"] > 0
