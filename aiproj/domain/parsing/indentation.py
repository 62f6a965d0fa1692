"""Indentation tree grammar.

Directory lines declare path contexts, ``<filename>:`` headers open files and
the lines indented deeper than a header form its content::

    /MyApp/
    /src/main/
    App.kt:
        fun main() {
            println("hi")
        }

Directory contexts stack by indentation: a directory line closes every open
context at the same or deeper indentation. Fenced regions outside file
content are skipped entirely.
"""

import logging
import re
from dataclasses import dataclass

from aiproj.domain.models.project import ProjectFile
from aiproj.domain.parsing.languages import looks_like_filename
from aiproj.domain.parsing.scanner import is_blank, leading_whitespace, normalize_path, strip_eol
from aiproj.domain.validation import PathValidator

logger = logging.getLogger(__name__)

DIRECTORY_PATTERN = re.compile(r"^([ \t]*)/([^/\s]+(?:/[^/\s]+)*)/[ \t]*$")
HEADER_PATTERN = re.compile(r"^([ \t]*)([\w\-.][\w\-./]*):[ \t]*$")
FENCE_PATTERN = re.compile(r"^[ \t]*```")

TAB_WIDTH = 4


@dataclass
class _Context:
    indent: int
    segments: list[str]


def _width(whitespace: str) -> int:
    return len(whitespace.expandtabs(TAB_WIDTH))


def _dedent(line: str, width: int) -> str:
    """Remove ``width`` columns of leading whitespace, keeping the rest."""
    consumed = 0
    index = 0
    while index < len(line) and consumed < width and line[index] in " \t":
        consumed = _width(line[: index + 1])
        index += 1
    return line[index:]


def _collect_block(lines: list[str], start: int, header_indent: int) -> int:
    """Return the index one past the last content line of a block."""
    end = start
    index = start
    while index < len(lines):
        line = lines[index]
        if is_blank(line):
            index += 1
            continue
        if _width(leading_whitespace(line)) <= header_indent:
            break
        index += 1
        end = index
    return end


def _block_content(block: list[str]) -> str:
    indents = [_width(leading_whitespace(line)) for line in block if not is_blank(line)]
    strip = min(indents) if indents else 0
    return "".join(_dedent(line, strip) for line in block)


def extract(lines: list[str], root: str) -> list[ProjectFile]:
    """Extract files declared with the indentation tree convention.

    Returns an empty list when the text does not use the convention.

    Raises:
        ExtractionError: If a declared file path is unsafe
    """
    files: list[ProjectFile] = []
    contexts: list[_Context] = []
    seen_declaration = False
    in_fence = False
    index = 0

    while index < len(lines):
        line = lines[index]
        body = strip_eol(line)
        index += 1

        if FENCE_PATTERN.match(body):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        dir_match = DIRECTORY_PATTERN.match(body)
        if dir_match:
            indent = _width(dir_match.group(1))
            segments = dir_match.group(2).split("/")
            is_root_declaration = (
                not seen_declaration
                and len(segments) == 1
                and PathValidator.sanitize_project_name(segments[0]) == root
            )
            seen_declaration = True
            if is_root_declaration:
                logger.debug(f"Root declaration at line {index}: /{segments[0]}/")
                continue
            while contexts and contexts[-1].indent >= indent:
                contexts.pop()
            contexts.append(_Context(indent=indent, segments=segments))
            continue

        header_match = HEADER_PATTERN.match(body)
        if not header_match or not looks_like_filename(header_match.group(2)):
            continue

        seen_declaration = True
        header_line = index
        header_indent = _width(header_match.group(1))
        end = _collect_block(lines, index, header_indent)
        block = lines[index:end]
        index = end
        while block and is_blank(block[0]):
            block.pop(0)

        if not block:
            logger.debug(f"Header without content at line {header_line}: {header_match.group(2)}")
            continue

        while contexts and contexts[-1].indent > header_indent:
            contexts.pop()
        prefix = [segment for context in contexts for segment in context.segments]
        path = normalize_path("/".join(prefix + [header_match.group(2)]), header_line)

        files.append(ProjectFile(path=path, content=_block_content(block)))
        logger.debug(f"Indented file at line {header_line}: {path} ({len(block)} lines)")

    return files
