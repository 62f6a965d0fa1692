"""Line-level helpers shared by the grammar scanners."""

import re

from aiproj.domain.validation import PathValidationError, PathValidator


# One physical line including its terminator, or a final unterminated line
_LINE_PATTERN = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+\Z")


class ExtractionError(Exception):
    """A grammar was recognized but a file could not be extracted."""

    def __init__(self, message: str, line_number: int | None = None, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number
        self.details = details
        # Set by the parser to the grammar that was being extracted
        self.grammar = None


def split_lines(text: str) -> list[str]:
    """Split on ``\\r\\n``, ``\\n`` or ``\\r`` keeping each line's terminator.

    ``"".join(split_lines(text)) == text`` always holds.
    """
    return _LINE_PATTERN.findall(text)


def strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def is_blank(line: str) -> bool:
    return not line.strip()


def leading_whitespace(line: str) -> str:
    body = strip_eol(line)
    return body[: len(body) - len(body.lstrip(" \t"))]


def normalize_path(raw: str, line_number: int) -> str:
    """Normalize a file path found at ``line_number`` (1-based)."""
    try:
        return PathValidator.normalize_relative_path(raw)
    except PathValidationError as e:
        raise ExtractionError(
            f"Invalid file path at line {line_number}",
            line_number=line_number,
            details=str(e),
        ) from e
