"""Unit tests for StderrStateObserver."""

from aiproj.domain.events import StderrStateObserver
from aiproj.domain.models.generation import (
    CallingAI,
    Failed,
    GenerationError,
    GenerationErrorType,
    Preparing,
    WritingFiles,
)


def test_emits_state_lines_to_stderr(capsys):
    observer = StderrStateObserver()

    observer.on_state(Preparing())
    observer.on_state(CallingAI(message="Requesting project..."))
    observer.on_state(WritingFiles(progress=2, total=5))

    captured = capsys.readouterr()
    lines = captured.err.splitlines()
    assert captured.out == ""
    assert lines[0] == "[STATE] preparing"
    assert lines[1] == "[STATE] calling_ai message='Requesting project...'"
    assert lines[2] == "[STATE] writing_files progress=2/5"


def test_failed_line_carries_error_type(capsys):
    error = GenerationError(error_type=GenerationErrorType.PARSING_ERROR, message="bad block")

    StderrStateObserver().on_state(Failed(error=error))

    assert "error=parsing_error" in capsys.readouterr().err
