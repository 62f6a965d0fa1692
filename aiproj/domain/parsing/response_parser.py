"""Turns raw model output into a ProjectStructure.

Four grammars are tried in a fixed order and the first that yields files
wins:

1. explicit delimiter (``>>> FILE: path``), which governs the whole parse
   whenever a marker is present
2. indentation tree (``/dir/`` + ``name.ext:`` + indented body)
3. fenced code blocks (```` ```lang name.ext ````)
4. labeled headers (``--- name.ext ---``, ``// File: name.ext`` and similar)

``parse`` never raises; every failure is returned as a ``ParserError``.
"""

import logging
from collections.abc import Callable

from aiproj.domain.constants import FILE_MARKER
from aiproj.domain.models.parser_result import GrammarKind, ParserError, ParserResult, ParserSuccess
from aiproj.domain.models.project import ProjectFile, ProjectStructure
from aiproj.domain.parsing import delimiter, fenced, indentation, labeled
from aiproj.domain.parsing.scanner import ExtractionError, split_lines
from aiproj.domain.validation import PathValidator

logger = logging.getLogger(__name__)

NO_FILES_MESSAGE = "no files found"
NO_VALID_MARKERS_MESSAGE = "no valid file markers"

Extractor = Callable[[list[str]], list[ProjectFile]]


class ResponseParser:
    """Stateless multi-grammar parser."""

    def parse(self, raw: str, project_name_hint: str) -> ParserResult:
        if not raw or not raw.strip():
            return ParserError(
                message="Empty AI response",
                details="The response was empty or whitespace-only",
            )

        root = PathValidator.sanitize_project_name(project_name_hint)

        try:
            return self._parse(raw, root)
        except ExtractionError as e:
            logger.warning(f"Extraction failed: {e.message}")
            return ParserError(
                message=e.message,
                details=e.details,
                grammar=e.grammar,
                line_number=e.line_number,
            )
        except Exception as e:
            logger.exception("Unexpected parser failure")
            return ParserError(
                message=f"Parsing failed: {e}",
                details=type(e).__name__,
            )

    def _parse(self, raw: str, root: str) -> ParserResult:
        lines = split_lines(raw)

        if delimiter.has_markers(lines):
            files = self._run(GrammarKind.EXPLICIT_DELIMITER, delimiter.extract, lines)
            if not files:
                return ParserError(
                    message=NO_VALID_MARKERS_MESSAGE,
                    details=f"Every '{FILE_MARKER}' marker had an empty or unsafe path",
                    grammar=GrammarKind.EXPLICIT_DELIMITER,
                )
            return self._success(root, files, GrammarKind.EXPLICIT_DELIMITER)

        fallbacks: list[tuple[GrammarKind, Extractor]] = [
            (GrammarKind.INDENTATION_TREE, lambda ls: indentation.extract(ls, root)),
            (GrammarKind.FENCED_BLOCK, fenced.extract),
            (GrammarKind.LABELED_HEADER, labeled.extract),
        ]
        for grammar, extractor in fallbacks:
            files = self._run(grammar, extractor, lines)
            if files:
                return self._success(root, files, grammar)

        logger.info("No grammar recognized in response")
        return ParserError(
            message=NO_FILES_MESSAGE,
            details=(
                f"Expected '{FILE_MARKER} path' markers, an indented '/dir/' + 'name.ext:' tree, "
                "fenced code blocks or '--- name.ext ---' labels"
            ),
        )

    @staticmethod
    def _run(grammar: GrammarKind, extractor: Extractor, lines: list[str]) -> list[ProjectFile]:
        try:
            return extractor(lines)
        except ExtractionError as e:
            e.grammar = grammar
            raise

    @staticmethod
    def _success(root: str, files: list[ProjectFile], grammar: GrammarKind) -> ParserSuccess:
        structure = ProjectStructure.build(root, files)
        logger.info(
            f"Parsed {structure.metadata.total_files} files "
            f"({structure.metadata.total_size} bytes) using {grammar.value}"
        )
        return ParserSuccess(structure=structure, grammar=grammar)


def parse_response(raw: str, project_name_hint: str) -> ParserResult:
    """Module-level shortcut for ``ResponseParser().parse``."""
    return ResponseParser().parse(raw, project_name_hint)
