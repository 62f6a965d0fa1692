from typing import Any

from aiproj.domain.models.generation import ProviderOption
from aiproj.domain.providers.ai_provider import AIProvider

# Option id used when a provider advertises no options at all
FALLBACK_OPTION_ID = "default"


class ProviderFactory:
    """Registry of provider classes keyed by ``ProviderIdentifier`` value.

    Lookups go through metadata classmethods, so listing providers or
    resolving an option never instantiates (or validates) a provider.
    """

    _registry: dict[str, type[AIProvider]] = {}

    @classmethod
    def register(cls, key: str, provider_class: type[AIProvider]) -> None:
        """Register ``provider_class`` under ``key``, replacing any previous entry.

        Raises:
            ValueError: If the key is blank
            TypeError: If the class is not an AIProvider
        """
        if not key or not key.strip():
            raise ValueError("Provider key must not be blank")
        if not (isinstance(provider_class, type) and issubclass(provider_class, AIProvider)):
            raise TypeError(f"{provider_class!r} is not an AIProvider subclass")
        cls._registry[key] = provider_class

    @classmethod
    def is_registered(cls, provider_key: str) -> bool:
        return provider_key in cls._registry

    @classmethod
    def create(cls, provider_key: str, config: dict[str, Any] | None = None) -> AIProvider:
        """Instantiate the provider registered as ``provider_key``.

        The provider receives its own config block as a single dict.

        Raises:
            KeyError: If provider_key is not registered
        """
        try:
            provider_class = cls._registry[provider_key]
        except KeyError:
            raise KeyError(
                f"Provider: '{provider_key}' not found. "
                f"Available providers: {', '.join(cls._registry)}"
            ) from None
        return provider_class(config or {})

    @classmethod
    def list_providers(cls) -> list[str]:
        return list(cls._registry)

    @classmethod
    def get_all_metadata(cls) -> list[dict[str, Any]]:
        return [provider_class.get_metadata() for provider_class in cls._registry.values()]

    @classmethod
    def get_metadata(cls, provider_key: str) -> dict[str, Any] | None:
        provider_class = cls._registry.get(provider_key)
        return provider_class.get_metadata() if provider_class else None

    @classmethod
    def resolve_option(cls, provider_key: str, option_id: str | None = None) -> ProviderOption:
        """Turn an option id into the provider's advertised ProviderOption.

        With no id, the provider's first advertised option is chosen
        (``default`` when it advertises none, or is not registered). Ids the
        provider does not advertise are passed through unchanged, since
        providers such as the CLIs accept arbitrary model names.
        """
        provider_class = cls._registry.get(provider_key)
        options = provider_class.get_options() if provider_class else []

        if option_id is None:
            return options[0] if options else ProviderOption(id=FALLBACK_OPTION_ID)

        for option in options:
            if option.id == option_id:
                return option
        return ProviderOption(id=option_id)
