"""Project structure models produced by the response parser."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectFile(BaseModel):
    """A single parsed file: relative path plus exact content.

    Only ``path`` and ``content`` are stored. ``directory``, ``filename`` and
    ``extension`` are always derived from the path.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    content: str

    @field_validator("path")
    @classmethod
    def _path_relative_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("path must be non-empty")
        if v.startswith("/"):
            raise ValueError("path must be relative")
        return v

    @property
    def directory(self) -> str:
        head, sep, _ = self.path.rpartition("/")
        return head if sep else ""

    @property
    def filename(self) -> str:
        return self.path.rpartition("/")[2]

    @property
    def extension(self) -> str:
        stem, sep, ext = self.filename.rpartition(".")
        return ext if sep else ""

    @property
    def size(self) -> int:
        """UTF-8 byte length of the content."""
        return len(self.content.encode("utf-8"))


class ProjectMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    total_size: int = 0
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    provider_used: str | None = None
    option_used: str | None = None


class ProjectStructure(BaseModel):
    """Parsed project: sanitized root name plus files in order of appearance."""

    model_config = ConfigDict(frozen=True)

    root: str
    files: tuple[ProjectFile, ...]
    metadata: ProjectMetadata = Field(default_factory=ProjectMetadata)

    @classmethod
    def build(cls, root: str, files: list[ProjectFile] | tuple[ProjectFile, ...]) -> "ProjectStructure":
        """Create a structure with metadata derived from ``files``."""
        files = tuple(files)
        return cls(
            root=root,
            files=files,
            metadata=ProjectMetadata(
                total_files=len(files),
                total_size=sum(f.size for f in files),
            ),
        )

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def effective_files(self) -> list[ProjectFile]:
        """One file per path, first-appearance order, last occurrence's content."""
        # Re-assigning a key keeps its original insertion position.
        latest: dict[str, ProjectFile] = {}
        for f in self.files:
            latest[f.path] = f
        return list(latest.values())

    def with_provenance(self, provider: str, option: str) -> "ProjectStructure":
        return self.model_copy(
            update={
                "metadata": self.metadata.model_copy(
                    update={"provider_used": provider, "option_used": option}
                )
            }
        )

    def structurally_equal(self, other: "ProjectStructure") -> bool:
        """Compare root and files, ignoring the generation timestamp."""
        return self.root == other.root and self.files == other.files
