"""Maps failures from every pipeline stage onto the GenerationError taxonomy."""

from aiproj.application.storage import ArchiveError, ProjectWriteError, StorageQuotaError
from aiproj.domain.errors import AiProviderErrorType, ProviderError
from aiproj.domain.models.generation import GenerationError, GenerationErrorType
from aiproj.domain.models.parser_result import ParserError


_PROVIDER_ERROR_MAP: dict[AiProviderErrorType, GenerationErrorType] = {
    AiProviderErrorType.INVALID_REQUEST: GenerationErrorType.INVALID_REQUEST,
    AiProviderErrorType.NETWORK_ERROR: GenerationErrorType.PROVIDER_UNREACHABLE,
    AiProviderErrorType.AUTHENTICATION_ERROR: GenerationErrorType.PROVIDER_UNREACHABLE,
    AiProviderErrorType.RATE_LIMITED: GenerationErrorType.PROVIDER_UNREACHABLE,
    AiProviderErrorType.TIMEOUT: GenerationErrorType.PROVIDER_UNREACHABLE,
    AiProviderErrorType.PROVIDER_ERROR: GenerationErrorType.PROVIDER_UNREACHABLE,
    AiProviderErrorType.EMPTY_RESPONSE: GenerationErrorType.EMPTY_AI_RESPONSE,
    AiProviderErrorType.UNKNOWN: GenerationErrorType.UNKNOWN_ERROR,
}


def invalid_request(message: str, details: str | None = None) -> GenerationError:
    return GenerationError(
        error_type=GenerationErrorType.INVALID_REQUEST,
        message=message,
        details=details,
    )


def empty_response() -> GenerationError:
    return GenerationError(
        error_type=GenerationErrorType.EMPTY_AI_RESPONSE,
        message="The AI returned an empty response",
        details="The response was empty or contained only whitespace",
    )


def from_provider_error(error: ProviderError) -> GenerationError:
    return GenerationError(
        error_type=_PROVIDER_ERROR_MAP.get(error.error_type, GenerationErrorType.UNKNOWN_ERROR),
        message=error.message,
        details=f"provider error type: {error.error_type.value}",
        cause=error,
    )


def from_parser_error(error: ParserError) -> GenerationError:
    """No grammar recognized -> malformed output; otherwise a parsing error."""
    error_type = (
        GenerationErrorType.MALFORMED_STRUCTURAL_OUTPUT
        if error.grammar is None
        else GenerationErrorType.PARSING_ERROR
    )
    details = error.details
    if error.line_number is not None:
        details = f"line {error.line_number}: {details}" if details else f"line {error.line_number}"
    return GenerationError(error_type=error_type, message=error.message, details=details)


def from_write_error(error: ProjectWriteError) -> GenerationError:
    error_type = (
        GenerationErrorType.STORAGE_QUOTA_EXCEEDED
        if isinstance(error, StorageQuotaError)
        else GenerationErrorType.FILE_SYSTEM_ERROR
    )
    return GenerationError(
        error_type=error_type,
        message=str(error),
        details=f"failed file: {error.path}" if error.path else None,
        cause=error,
        failed_index=error.failed_index,
    )


def from_archive_error(error: ArchiveError) -> GenerationError:
    return GenerationError(
        error_type=GenerationErrorType.ZIP_CREATION_ERROR,
        message=str(error),
        cause=error,
    )


def from_unexpected(error: BaseException) -> GenerationError:
    return GenerationError(
        error_type=GenerationErrorType.UNKNOWN_ERROR,
        message=f"Unexpected error: {error}",
        details=type(error).__name__,
        cause=error,
    )
