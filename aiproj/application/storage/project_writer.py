"""Writes a parsed project to disk, one file at a time."""

import errno
import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from aiproj.domain.constants import FREE_SPACE_BUFFER_BYTES
from aiproj.domain.models.project import ProjectStructure
from aiproj.domain.validation import PathValidationError, PathValidator

logger = logging.getLogger(__name__)

# errno values that mean "out of space" rather than a generic I/O failure
QUOTA_ERRNOS = frozenset(
    code for code in (errno.ENOSPC, getattr(errno, "EDQUOT", None)) if code is not None
)


class ProjectWriteError(Exception):
    """Raised when a project file cannot be written."""

    def __init__(self, message: str, *, failed_index: int | None = None, path: str | None = None):
        super().__init__(message)
        self.failed_index = failed_index
        self.path = path


class StorageQuotaError(ProjectWriteError):
    """Raised when the destination runs out of space."""
    pass


def is_quota_error(error: OSError) -> bool:
    return error.errno in QUOTA_ERRNOS


class ProjectWriter:
    """Materializes a ProjectStructure under ``<output_dir>/<root>``.

    The project directory is cleared first. Files are then written in
    ``structure.files`` order, so when a path occurs twice the last occurrence
    is what ends up on disk. Nothing is rolled back on failure.
    """

    def __init__(self, output_dir: Path, *, check_free_space: bool = True) -> None:
        self.output_dir = output_dir
        self.check_free_space = check_free_space

    def project_dir(self, root: str) -> Path:
        return self.output_dir / root

    def ensure_space(self, structure: ProjectStructure) -> None:
        """Fail early when the volume cannot hold the project plus a buffer.

        Raises:
            StorageQuotaError: If free space is below total size + buffer
        """
        if not self.check_free_space:
            return

        probe = self.output_dir
        while not probe.exists() and probe != probe.parent:
            probe = probe.parent

        free = shutil.disk_usage(probe).free
        required = structure.metadata.total_size + FREE_SPACE_BUFFER_BYTES
        if free < required:
            raise StorageQuotaError(
                f"Insufficient storage: {format_bytes(required)} required, "
                f"{format_bytes(free)} available"
            )

    def write(
        self,
        structure: ProjectStructure,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> Path:
        """Write every file and return the project directory.

        Args:
            structure: Parsed project
            on_progress: Called with (files written, total) after each file

        Raises:
            StorageQuotaError: If the disk or quota is full
            ProjectWriteError: If a path escapes the project directory or
                any other I/O error occurs
        """
        project_dir = self.project_dir(structure.root)

        try:
            if project_dir.exists():
                logger.info(f"Clearing existing project directory: {project_dir}")
                shutil.rmtree(project_dir)
            project_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise self._wrap_os_error(e, f"Cannot prepare project directory {project_dir}") from e

        total = len(structure.files)
        for index, project_file in enumerate(structure.files):
            destination = project_dir / project_file.path

            try:
                PathValidator.validate_within_root(destination, project_dir)
            except PathValidationError as e:
                raise ProjectWriteError(
                    f"Refusing to write outside the project directory: {project_file.path}",
                    failed_index=index,
                    path=project_file.path,
                ) from e

            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                destination.write_text(project_file.content, encoding="utf-8", newline="")
            except OSError as e:
                raise self._wrap_os_error(
                    e,
                    f"Failed to write {project_file.path}",
                    failed_index=index,
                    path=project_file.path,
                ) from e

            logger.debug(f"Wrote {project_file.path} ({project_file.size} bytes)")
            if on_progress is not None:
                on_progress(index + 1, total)

        logger.info(f"Wrote {total} files to {project_dir}")
        return project_dir

    @staticmethod
    def _wrap_os_error(
        error: OSError,
        message: str,
        *,
        failed_index: int | None = None,
        path: str | None = None,
    ) -> ProjectWriteError:
        error_class = StorageQuotaError if is_quota_error(error) else ProjectWriteError
        return error_class(f"{message}: {error}", failed_index=failed_index, path=path)


def format_bytes(size: int) -> str:
    """Human-readable size, e.g. ``1.5 KB``."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.1f} GB"
