"""Fenced code block grammar: ```` ```<lang> [filename] ```` ... ```` ``` ````."""

import logging
import re

from aiproj.domain.models.project import ProjectFile
from aiproj.domain.parsing.languages import extension_for, is_known_language, looks_like_filename
from aiproj.domain.parsing.scanner import ExtractionError, normalize_path, strip_eol

logger = logging.getLogger(__name__)

OPEN_PATTERN = re.compile(r"^[ \t]*```(?!`)[ \t]*(.*?)[ \t]*$")
CLOSE_PATTERN = re.compile(r"^[ \t]*```[ \t]*$")


def _read_info(info: str) -> tuple[str | None, str | None]:
    """Split a fence info string into (language, filename)."""
    tokens = info.split()
    if not tokens:
        return None, None
    if len(tokens) == 1:
        token = tokens[0]
        if looks_like_filename(token) and not is_known_language(token):
            return None, token
        return token, None
    filename = tokens[1] if looks_like_filename(tokens[1]) else None
    return tokens[0], filename


def extract(lines: list[str]) -> list[ProjectFile]:
    """Extract one file per fenced block.

    Unnamed blocks are called ``snippet_<n>.<ext>``, counting unnamed blocks
    from 1. Returns an empty list when the text has no fenced blocks.

    Raises:
        ExtractionError: If a block is never closed or names an unsafe path
    """
    files: list[ProjectFile] = []
    unnamed = 0
    index = 0

    while index < len(lines):
        open_match = OPEN_PATTERN.match(strip_eol(lines[index]))
        index += 1
        if open_match is None:
            continue

        open_line = index
        language, filename = _read_info(open_match.group(1))

        body: list[str] = []
        closed = False
        while index < len(lines):
            line = lines[index]
            index += 1
            if CLOSE_PATTERN.match(strip_eol(line)):
                closed = True
                break
            body.append(line)

        if not closed:
            raise ExtractionError(
                f"Unterminated code block starting at line {open_line}",
                line_number=open_line,
                details="Response may have been truncated",
            )

        if filename:
            path = normalize_path(filename, open_line)
        else:
            unnamed += 1
            path = f"snippet_{unnamed}.{extension_for(language)}"

        files.append(ProjectFile(path=path, content="".join(body)))
        logger.debug(f"Fenced block at line {open_line}: {path} (language={language})")

    return files
