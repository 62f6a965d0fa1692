"""Domain-level exceptions for the AI project generator."""

from enum import Enum


class AiProviderErrorType(str, Enum):
    """Failure categories a provider may report."""

    NETWORK_ERROR = "network_error"
    AUTHENTICATION_ERROR = "authentication_error"
    RATE_LIMITED = "rate_limited"
    INVALID_REQUEST = "invalid_request"
    PROVIDER_ERROR = "provider_error"
    TIMEOUT = "timeout"
    EMPTY_RESPONSE = "empty_response"
    UNKNOWN = "unknown"


class ProviderError(Exception):
    """Raised when a provider fails (network, auth, timeout, etc.)."""

    def __init__(
        self,
        message: str,
        error_type: AiProviderErrorType = AiProviderErrorType.UNKNOWN,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type


class ProviderInterrupted(ProviderError):
    """Raised by a provider that stopped early because its stop event was set."""

    def __init__(self, message: str = "Provider call stopped by caller") -> None:
        super().__init__(message, AiProviderErrorType.PROVIDER_ERROR)
