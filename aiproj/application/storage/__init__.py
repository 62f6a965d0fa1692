"""Project output: file writing and archiving."""

from .project_writer import ProjectWriteError, ProjectWriter, StorageQuotaError, format_bytes
from .zip_archiver import ArchiveError, ZipArchiver

__all__ = [
    "ProjectWriteError",
    "ProjectWriter",
    "StorageQuotaError",
    "format_bytes",
    "ArchiveError",
    "ZipArchiver",
]
