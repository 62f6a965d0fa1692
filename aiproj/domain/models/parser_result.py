"""Parser outcome models.

Parsing never raises: every outcome is a ``ParserSuccess`` or ``ParserError``
value, so callers have to handle both.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from aiproj.domain.models.project import ProjectStructure


class GrammarKind(str, Enum):
    """Textual conventions recognized inside model output."""

    EXPLICIT_DELIMITER = "explicit_delimiter"  # >>> FILE: path
    INDENTATION_TREE = "indentation_tree"      # /dir/ + name.ext: + indented body
    FENCED_BLOCK = "fenced_block"              # ```lang name.ext ... ```
    LABELED_HEADER = "labeled_header"          # --- name.ext ---, // File: name.ext, **name.ext**


class ParserSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    structure: ProjectStructure
    grammar: GrammarKind


class ParserError(BaseModel):
    """Parse failure.

    ``grammar`` is None when no grammar was recognized at all, and set when a
    grammar was recognized but extraction failed (e.g. an unterminated block).
    """

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    message: str
    details: str | None = None
    grammar: GrammarKind | None = None
    line_number: int | None = None


ParserResult = ParserSuccess | ParserError
