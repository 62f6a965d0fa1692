from .ai_provider import AIProvider
from .provider_factory import ProviderFactory
from .claude_code_provider import ClaudeCodeProvider
from .gemini_cli_provider import GeminiCliProvider
from .replay_provider import ReplayProvider

# Register built-in providers
ProviderFactory.register("claude-code", ClaudeCodeProvider)
ProviderFactory.register("gemini-cli", GeminiCliProvider)
ProviderFactory.register("replay", ReplayProvider)

__all__ = [
    "AIProvider",
    "ProviderFactory",
    "ClaudeCodeProvider",
    "GeminiCliProvider",
    "ReplayProvider",
]
