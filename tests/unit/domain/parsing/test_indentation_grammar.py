"""Unit tests for the indentation tree grammar."""

import pytest

from aiproj.domain.parsing import indentation
from aiproj.domain.parsing.scanner import ExtractionError, split_lines


def _extract(text: str, root: str = "MyApp"):
    return indentation.extract(split_lines(text), root)


def test_root_declaration_is_not_a_directory():
    files = _extract("/TestProject/\nmain.kt:\n    fun main() {}\n", root="TestProject")

    assert [f.path for f in files] == ["main.kt"]
    assert files[0].content == "fun main() {}\n"


def test_directory_contexts_prefix_paths():
    text = (
        "/MyApp/\n"
        "/src/main/\n"
        "App.kt:\n"
        "    fun main() {\n"
        "        println(\"hi\")\n"
        "    }\n"
    )

    files = _extract(text)

    assert [f.path for f in files] == ["src/main/App.kt"]
    assert files[0].content == 'fun main() {\n    println("hi")\n}\n'


def test_nested_directories_close_by_indentation():
    text = (
        "/src/\n"
        "    /main/\n"
        "        App.kt:\n"
        "            code()\n"
        "/docs/\n"
        "    guide.md:\n"
        "        # Guide\n"
    )

    files = _extract(text)

    assert [f.path for f in files] == ["src/main/App.kt", "docs/guide.md"]


def test_only_minimum_indent_is_stripped():
    text = "util.py:\n\tdef f():\n\t    return 1\n"

    files = _extract(text)

    assert files[0].content == "def f():\n    return 1\n"


def test_inner_blank_lines_kept_and_outer_dropped():
    text = "main.py:\n\n    a = 1\n\n    b = 2\n\nNext we add tests.\n"

    files = _extract(text)

    assert files[0].content == "a = 1\n\nb = 2\n"


def test_block_ends_at_header_indentation():
    text = "a.txt:\n  one\nb.txt:\n  two\n"

    files = _extract(text)

    assert [(f.path, f.content) for f in files] == [("a.txt", "one\n"), ("b.txt", "two\n")]


def test_prose_labels_are_not_headers():
    text = "Example:\n    this is an indented quote\nNote: not a header\n"

    assert _extract(text) == []


def test_header_without_content_is_skipped():
    assert _extract("empty.txt:\nno indent here\n") == []


def test_fenced_regions_are_opaque():
    text = "```\nmain.py:\n    print(1)\n```\n"

    assert _extract(text) == []


def test_unsafe_path_raises():
    with pytest.raises(ExtractionError):
        _extract("/../\nx.txt:\n  y\n")
