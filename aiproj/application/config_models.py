"""Generator configuration models.

Config structure (``.aiproj/config.yml``)::

    provider: claude-code
    option: sonnet
    output_dir: .aiproj/projects
    archive_dir: .aiproj/archives
    keep_archives: 10
    check_free_space: true
    response_timeout: 600
    log_level: WARNING
    prompt:
      inject_system_prompt: true
      custom_system_prompt: null
      separator: "\\n\\n## USER REQUEST:\\n"
    providers:
      claude-code:
        max_turns: 1
      replay:
        response_file: saved-response.txt
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from aiproj.application.prompts import DEFAULT_SEPARATOR
from aiproj.domain.constants import DEFAULT_ARCHIVE_DIR, DEFAULT_KEEP_ARCHIVES, DEFAULT_OUTPUT_DIR


class PromptConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    inject_system_prompt: bool = True
    custom_system_prompt: str | None = None
    separator: str = DEFAULT_SEPARATOR


class GeneratorConfig(BaseModel):
    """Top-level generator configuration, validated from merged YAML."""

    model_config = ConfigDict(extra="forbid")

    provider: str = "claude-code"
    option: str | None = None  # None: first option the provider advertises
    output_dir: Path = DEFAULT_OUTPUT_DIR
    archive_dir: Path = DEFAULT_ARCHIVE_DIR
    keep_archives: int | None = Field(default=DEFAULT_KEEP_ARCHIVES, ge=1)  # None: keep every archive
    check_free_space: bool = True
    response_timeout: float | None = Field(default=None, gt=0)
    log_level: str = "WARNING"
    prompt: PromptConfig = Field(default_factory=PromptConfig)
    providers: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v!r}")
        return level

    def resolve_paths(self, base: Path) -> "GeneratorConfig":
        """Anchor relative output and archive dirs at ``base``."""
        return self.model_copy(
            update={
                "output_dir": self.output_dir if self.output_dir.is_absolute() else base / self.output_dir,
                "archive_dir": self.archive_dir if self.archive_dir.is_absolute() else base / self.archive_dir,
            }
        )
