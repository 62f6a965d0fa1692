"""CLI tests for the parse command."""

import json
from pathlib import Path

from click.testing import CliRunner

from aiproj.interface.cli.cli import cli


def test_parse_lists_files_as_json(tmp_path: Path):
    saved = tmp_path / "resp.txt"
    saved.write_text(">>> FILE: a.txt\nü\n>>> FILE: b/c.py\nx = 1\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--json", "parse", str(saved), "--name", "My App"])

    assert result.exit_code == 0
    obj = json.loads(result.output)
    assert obj["command"] == "parse"
    assert obj["grammar"] == "explicit_delimiter"
    assert obj["root"] == "My_App"
    assert obj["files"] == [{"path": "a.txt", "size": 3}, {"path": "b/c.py", "size": 6}]
    assert obj["total_size"] == 9


def test_parse_defaults_root_to_file_stem(tmp_path: Path):
    saved = tmp_path / "weather-app.md"
    saved.write_text("```kotlin Main.kt\nfun main() {}\n```\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["parse", str(saved)])

    assert result.exit_code == 0
    assert "Root: weather-app" in result.output
    assert "Grammar: fenced_block" in result.output
    assert "Main.kt" in result.output


def test_parse_error_reports_line(tmp_path: Path):
    saved = tmp_path / "cut.txt"
    saved.write_text("intro\n```python\nprint(1)\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--json", "parse", str(saved)])

    assert result.exit_code == 1
    obj = json.loads(result.output)
    assert obj["grammar"] == "fenced_block"
    assert obj["line_number"] == 2


def test_parse_error_plain_text(tmp_path: Path):
    saved = tmp_path / "prose.txt"
    saved.write_text("nothing to see", encoding="utf-8")

    result = CliRunner().invoke(cli, ["parse", str(saved)])

    assert result.exit_code == 1
    assert "no files found" in result.output
