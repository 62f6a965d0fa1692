"""Packages a written project into a single zip archive."""

import logging
import shutil
import time
import zipfile
from pathlib import Path

from aiproj.domain.constants import DEFAULT_KEEP_ARCHIVES
from aiproj.domain.models.project import ProjectStructure

logger = logging.getLogger(__name__)


class ArchiveError(Exception):
    """Raised when the archive cannot be created."""
    pass


class ZipArchiver:
    """Creates ``<archive_dir>/<root>_<millis>.zip`` from a written project.

    Entries are ``<root>/<path>`` in first-appearance order, one per distinct
    path, streamed from disk one file at a time. After each archive is
    written, only the ``keep_archives`` newest ``.zip`` files in
    ``archive_dir`` are kept; None keeps everything.
    """

    def __init__(self, archive_dir: Path, keep_archives: int | None = DEFAULT_KEEP_ARCHIVES) -> None:
        if keep_archives is not None and keep_archives < 1:
            raise ValueError("keep_archives must be >= 1")
        self.archive_dir = archive_dir
        self.keep_archives = keep_archives

    def archive_path(self, root: str) -> Path:
        millis = int(time.time() * 1000)
        candidate = self.archive_dir / f"{root}_{millis}.zip"
        suffix = 1
        while candidate.exists():
            candidate = self.archive_dir / f"{root}_{millis}_{suffix}.zip"
            suffix += 1
        return candidate

    def create(self, structure: ProjectStructure, project_dir: Path) -> Path:
        """Archive the files of ``structure`` found under ``project_dir``.

        Raises:
            ArchiveError: If any file cannot be read or the archive written
        """
        try:
            self.archive_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveError(f"Cannot create archive directory {self.archive_dir}: {e}") from e

        archive = self.archive_path(structure.root)

        try:
            with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for project_file in structure.effective_files():
                    entry = f"{structure.root}/{project_file.path}"
                    with open(project_dir / project_file.path, "rb") as src, zf.open(entry, "w") as dst:
                        shutil.copyfileobj(src, dst)
                    logger.debug(f"Archived {entry}")
        except (OSError, zipfile.BadZipFile, ValueError) as e:
            archive.unlink(missing_ok=True)
            raise ArchiveError(f"Failed to create archive {archive.name}: {e}") from e

        logger.info(f"Created archive {archive} ({archive.stat().st_size} bytes)")
        self.prune(keep=archive)
        return archive

    def list_archives(self) -> list[Path]:
        """Zip files in ``archive_dir``, newest first."""
        if not self.archive_dir.is_dir():
            return []
        archives = [p for p in self.archive_dir.glob("*.zip") if p.is_file()]
        return sorted(archives, key=lambda p: (p.stat().st_mtime, p.name), reverse=True)

    def prune(self, keep: Path | None = None) -> list[Path]:
        """Delete all but the ``keep_archives`` newest archives.

        ``keep`` is never deleted. Failures to delete are logged and skipped.

        Returns:
            The archives that were removed
        """
        if self.keep_archives is None:
            return []

        removed: list[Path] = []
        for stale in self.list_archives()[self.keep_archives:]:
            if keep is not None and stale == keep:
                continue
            try:
                stale.unlink()
            except OSError as e:
                logger.warning(f"Could not remove old archive {stale.name}: {e}")
                continue
            removed.append(stale)
            logger.debug(f"Removed old archive {stale.name}")

        if removed:
            logger.info(f"Removed {len(removed)} old archive(s) from {self.archive_dir}")
        return removed
