from typing import Literal

from pydantic import BaseModel, Field


class BaseOutput(BaseModel):
    schema_version: int = 1
    command: Literal["generate", "parse", "providers", "validate"]
    exit_code: int
    error: str | None = None


class GenerateOutput(BaseOutput):
    command: Literal["generate"] = "generate"
    # Final state kind: completed, failed, or idle when cancelled
    state: str | None = None
    project_root: str | None = None
    archive_path: str | None = None
    output_dir: str | None = None
    files_archived: int | None = None
    archive_size: int | None = None
    message: str | None = None
    error_type: str | None = None
    details: str | None = None
    failed_index: int | None = None


class FileSummary(BaseModel):
    """One parsed file for parse output."""
    path: str
    size: int


class ParseOutput(BaseOutput):
    command: Literal["parse"] = "parse"
    grammar: str | None = None
    root: str | None = None
    files: list[FileSummary] = Field(default_factory=list)
    total_size: int | None = None
    details: str | None = None
    line_number: int | None = None


class OptionSummary(BaseModel):
    id: str
    display_name: str = ""
    description: str = ""


class ProviderSummary(BaseModel):
    """Summary of a provider for list output."""
    name: str
    description: str
    requires_config: bool = False


class ProviderDetail(BaseModel):
    """Detailed provider info for single provider view."""
    name: str
    description: str
    requires_config: bool = False
    config_keys: list[str] = Field(default_factory=list)
    default_response_timeout: int | None = None
    options: list[OptionSummary] = Field(default_factory=list)


class ProvidersOutput(BaseOutput):
    command: Literal["providers"] = "providers"
    providers: list[ProviderSummary] | None = None
    provider: ProviderDetail | None = None


class ValidationResult(BaseModel):
    """Result of validating a single provider."""

    provider_key: str
    passed: bool
    error: str | None = None


class ValidateOutput(BaseOutput):
    """Output for validate command."""

    command: Literal["validate"] = "validate"
    results: list[ValidationResult] = Field(default_factory=list)
    all_passed: bool = True
