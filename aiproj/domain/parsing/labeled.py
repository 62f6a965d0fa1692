"""Labeled header grammar, the last resort for loosely formatted replies.

A file starts at a line that is nothing but a label naming it::

    --- src/app.py ---
    // File: src/App.kt
    # File: setup.cfg
    **README.md**
    <!-- File: index.html -->

and runs until the next label, a ``--- end ---`` line or end of input.
"""

import logging
import re

from aiproj.domain.models.project import ProjectFile
from aiproj.domain.parsing.scanner import ExtractionError, is_blank, normalize_path, strip_eol

logger = logging.getLogger(__name__)

# A path with at least one extension, e.g. "src/main.py"
_NAME = r"([\w\-./]+\.\w+)"

LABEL_PATTERNS = (
    re.compile(rf"^---[ \t]*{_NAME}[ \t]*---$"),
    re.compile(rf"^//[ \t]*[Ff]ile:[ \t]*{_NAME}$"),
    re.compile(rf"^#[ \t]*[Ff]ile:[ \t]*{_NAME}$"),
    re.compile(rf"^\*\*{_NAME}\*\*$"),
    re.compile(rf"^<!--[ \t]*[Ff]ile:[ \t]*{_NAME}[ \t]*-->$"),
)
END_PATTERN = re.compile(r"^---[ \t]*end[ \t]*---$", re.IGNORECASE)


def _label(line: str) -> str | None:
    body = strip_eol(line).strip()
    for pattern in LABEL_PATTERNS:
        match = pattern.match(body)
        if match:
            return match.group(1)
    return None


def _trim_blank_edges(block: list[str]) -> list[str]:
    start, end = 0, len(block)
    while start < end and is_blank(block[start]):
        start += 1
    while end > start and is_blank(block[end - 1]):
        end -= 1
    return block[start:end]


def extract(lines: list[str]) -> list[ProjectFile]:
    """Extract files introduced by label lines.

    Blank lines around each body are dropped; inner lines keep their
    endings. Labels with unsafe paths and labels with no content are
    skipped. Returns an empty list when no label is found.
    """
    files: list[ProjectFile] = []
    current: tuple[str, int] | None = None
    block: list[str] = []

    def close() -> None:
        if current is None:
            return
        name, label_line = current
        body = _trim_blank_edges(block)
        if not body:
            logger.debug(f"Label without content at line {label_line}: {name}")
            return
        try:
            path = normalize_path(name, label_line)
        except ExtractionError as e:
            logger.warning(f"Skipping labeled file at line {label_line}: {e.details}")
            return
        files.append(ProjectFile(path=path, content="".join(body)))

    for index, line in enumerate(lines, start=1):
        name = _label(line)
        if name is not None:
            close()
            current, block = (name, index), []
            continue
        if END_PATTERN.match(strip_eol(line).strip()):
            close()
            current, block = None, []
            continue
        if current is not None:
            block.append(line)

    close()
    return files
