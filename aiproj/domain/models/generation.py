"""Generation request, result, error and state models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from aiproj.domain.models.project import ProjectStructure


@dataclass(frozen=True, slots=True)
class ProviderIdentifier:
    """Registered provider key (e.g. "claude-code", "gemini-cli")."""

    value: str

    def __str__(self) -> str:
        return self.value


class ProviderOption(BaseModel):
    """A capability variant selectable for a provider.

    Opaque to the parser and orchestrator; only the provider interprets ``id``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str = ""
    description: str = ""


class GenerationRequest(BaseModel):
    """Input to ``GenerationOrchestrator.generate``.

    Fields are not validated here: blank values are reported by the
    orchestrator as ``INVALID_REQUEST`` failures rather than raised.
    """

    model_config = ConfigDict(frozen=True)

    prompt: str
    provider: ProviderIdentifier
    option: ProviderOption
    project_name: str
    additional_context: str | None = None


class GenerationErrorType(str, Enum):
    INVALID_REQUEST = "invalid_request"
    PROVIDER_UNREACHABLE = "provider_unreachable"
    EMPTY_AI_RESPONSE = "empty_ai_response"
    MALFORMED_STRUCTURAL_OUTPUT = "malformed_structural_output"
    PARSING_ERROR = "parsing_error"
    FILE_SYSTEM_ERROR = "file_system_error"
    STORAGE_QUOTA_EXCEEDED = "storage_quota_exceeded"
    ZIP_CREATION_ERROR = "zip_creation_error"
    UNKNOWN_ERROR = "unknown_error"


class GenerationError(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error_type: GenerationErrorType
    message: str
    details: str | None = None
    cause: BaseException | None = Field(default=None, exclude=True)
    failed_index: int | None = None  # File index when writing failed partway


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    structure: ProjectStructure
    archive_path: Path
    output_dir: Path
    files_archived: int
    archive_size: int
    message: str | None = None


class GenerationStateKind(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    CALLING_AI = "calling_ai"
    PARSING = "parsing"
    WRITING_FILES = "writing_files"
    CREATING_ZIP = "creating_zip"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_KINDS = frozenset({GenerationStateKind.COMPLETED, GenerationStateKind.FAILED})


class _StateBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS  # type: ignore[attr-defined]


class Idle(_StateBase):
    kind: Literal[GenerationStateKind.IDLE] = GenerationStateKind.IDLE


class Preparing(_StateBase):
    kind: Literal[GenerationStateKind.PREPARING] = GenerationStateKind.PREPARING


class CallingAI(_StateBase):
    kind: Literal[GenerationStateKind.CALLING_AI] = GenerationStateKind.CALLING_AI
    message: str


class Parsing(_StateBase):
    kind: Literal[GenerationStateKind.PARSING] = GenerationStateKind.PARSING
    message: str


class WritingFiles(_StateBase):
    kind: Literal[GenerationStateKind.WRITING_FILES] = GenerationStateKind.WRITING_FILES
    progress: int
    total: int


class CreatingZip(_StateBase):
    kind: Literal[GenerationStateKind.CREATING_ZIP] = GenerationStateKind.CREATING_ZIP
    message: str


class Completed(_StateBase):
    kind: Literal[GenerationStateKind.COMPLETED] = GenerationStateKind.COMPLETED
    result: GenerationResult


class Failed(_StateBase):
    kind: Literal[GenerationStateKind.FAILED] = GenerationStateKind.FAILED
    error: GenerationError


GenerationState = Annotated[
    Union[Idle, Preparing, CallingAI, Parsing, WritingFiles, CreatingZip, Completed, Failed],
    Field(discriminator="kind"),
]
