"""Explicit delimiter grammar: ``>>> FILE: <path>`` opens each file."""

import logging
import re

from aiproj.domain.constants import FILE_MARKER
from aiproj.domain.models.project import ProjectFile
from aiproj.domain.parsing.scanner import ExtractionError, normalize_path, strip_eol

logger = logging.getLogger(__name__)

MARKER_PATTERN = re.compile(rf"^{re.escape(FILE_MARKER)}[ \t]*(.*?)[ \t]*$")


def has_markers(lines: list[str]) -> bool:
    return any(MARKER_PATTERN.match(strip_eol(line)) for line in lines)


def extract(lines: list[str]) -> list[ProjectFile]:
    """Extract every marked file.

    Content is every line after a marker, verbatim and with line endings,
    up to the next marker or end of input. Text before the first marker is
    discarded. A marker with an empty or unsafe path is skipped together with
    its content; the remaining files are still returned.
    """
    files: list[ProjectFile] = []
    current_path: str | None = None
    buffer: list[str] = []

    for index, line in enumerate(lines, start=1):
        match = MARKER_PATTERN.match(strip_eol(line))
        if match is None:
            if current_path is not None:
                buffer.append(line)
            continue

        if current_path is not None:
            files.append(ProjectFile(path=current_path, content="".join(buffer)))
        current_path = _marker_path(match.group(1), index)
        buffer = []

    if current_path is not None:
        files.append(ProjectFile(path=current_path, content="".join(buffer)))

    return files


def _marker_path(raw_path: str, index: int) -> str | None:
    """Normalized path of the marker at line ``index``, or None to skip it."""
    if not raw_path:
        logger.warning(f"Skipping file marker without a path at line {index}")
        return None
    try:
        path = normalize_path(raw_path, index)
    except ExtractionError as e:
        logger.warning(f"Skipping file marker at line {index}: {e.details}")
        return None
    logger.debug(f"Delimiter marker at line {index}: {path}")
    return path
