"""Domain models for the AI project generator."""

from .project import ProjectFile, ProjectMetadata, ProjectStructure
from .parser_result import GrammarKind, ParserError, ParserResult, ParserSuccess
from .generation import (
    CallingAI,
    Completed,
    CreatingZip,
    Failed,
    GenerationError,
    GenerationErrorType,
    GenerationRequest,
    GenerationResult,
    GenerationState,
    GenerationStateKind,
    Idle,
    Parsing,
    Preparing,
    ProviderIdentifier,
    ProviderOption,
    WritingFiles,
)


__all__ = [
    "ProjectFile",
    "ProjectMetadata",
    "ProjectStructure",
    "GrammarKind",
    "ParserError",
    "ParserResult",
    "ParserSuccess",
    "CallingAI",
    "Completed",
    "CreatingZip",
    "Failed",
    "GenerationError",
    "GenerationErrorType",
    "GenerationRequest",
    "GenerationResult",
    "GenerationState",
    "GenerationStateKind",
    "Idle",
    "Parsing",
    "Preparing",
    "ProviderIdentifier",
    "ProviderOption",
    "WritingFiles",
]
