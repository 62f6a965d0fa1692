"""Unit tests for the fenced code block grammar."""

import pytest

from aiproj.domain.parsing import fenced
from aiproj.domain.parsing.languages import extension_for, looks_like_filename
from aiproj.domain.parsing.scanner import ExtractionError, split_lines


def _extract(text: str):
    return fenced.extract(split_lines(text))


def test_named_and_unnamed_blocks():
    text = (
        "Main file:\n"
        "```kotlin Main.kt\n"
        "fun main() {}\n"
        "```\n"
        "Config:\n"
        "```json\n"
        "{\"a\": 1}\n"
        "```\n"
    )

    files = _extract(text)

    assert [f.path for f in files] == ["Main.kt", "snippet_1.json"]
    assert files[0].content == "fun main() {}\n"
    assert files[1].content == '{"a": 1}\n'


def test_unnamed_counter_skips_named_blocks():
    text = "```python\na\n```\n```js app.js\nb\n```\n```\nc\n```\n"

    files = _extract(text)

    assert [f.path for f in files] == ["snippet_1.py", "app.js", "snippet_2.txt"]


def test_filename_only_info_string():
    files = _extract("```src/util.py\nx = 1\n```\n")

    assert files[0].path == "src/util.py"


def test_bare_language_tag_is_not_a_filename():
    files = _extract("```py\nx\n```\n")

    assert files[0].path == "snippet_1.py"


def test_second_token_must_look_like_filename():
    files = _extract("```python title\nx\n```\n")

    assert files[0].path == "snippet_1.py"


def test_content_preserved_exactly():
    body = "  indented\n\n\ttabbed  \n"

    files = _extract(f"```text\n{body}```\n")

    assert files[0].content == body


def test_no_blocks_gives_nothing():
    assert _extract("Just prose.\nNo code here.\n") == []


def test_unterminated_block_raises_with_opening_line():
    with pytest.raises(ExtractionError) as exc_info:
        _extract("intro\n```python\nprint('cut off')\n")

    assert exc_info.value.line_number == 2


def test_unsafe_filename_raises():
    with pytest.raises(ExtractionError):
        _extract("```python ../evil.py\nx\n```\n")


@pytest.mark.parametrize(
    "language, ext",
    [("kotlin", "kt"), ("Python", "py"), ("json", "json"), ("bash", "sh"), ("brainfuck", "txt"), (None, "txt")],
)
def test_extension_table(language, ext):
    assert extension_for(language) == ext


@pytest.mark.parametrize(
    "token, expected",
    [("Main.kt", True), ("src/a.py", True), (".gitignore", True), ("Makefile", True), ("kotlin", False), ("v1.", False)],
)
def test_looks_like_filename(token, expected):
    assert looks_like_filename(token) is expected
