"""Provider execution for the generation pipeline."""

from .provider_execution_service import ProviderCancelled, ProviderExecutionService

__all__ = ["ProviderCancelled", "ProviderExecutionService"]
