"""Unit tests for generation request, error and state models."""

import pytest
from pydantic import TypeAdapter

from aiproj.domain.models.generation import (
    CallingAI,
    Completed,
    Failed,
    GenerationError,
    GenerationErrorType,
    GenerationResult,
    GenerationState,
    GenerationStateKind,
    Idle,
    Preparing,
    ProviderIdentifier,
    WritingFiles,
)
from aiproj.domain.models.project import ProjectFile, ProjectStructure


def _result(tmp_path) -> GenerationResult:
    structure = ProjectStructure.build("Demo", [ProjectFile(path="a.txt", content="x")])
    return GenerationResult(
        structure=structure,
        archive_path=tmp_path / "Demo.zip",
        output_dir=tmp_path / "Demo",
        files_archived=1,
        archive_size=120,
    )


class TestGenerationState:
    def test_only_completed_and_failed_are_terminal(self, tmp_path):
        error = GenerationError(error_type=GenerationErrorType.UNKNOWN_ERROR, message="boom")

        assert Completed(result=_result(tmp_path)).is_terminal
        assert Failed(error=error).is_terminal
        for state in [Idle(), Preparing(), CallingAI(message="m"), WritingFiles(progress=0, total=1)]:
            assert not state.is_terminal

    def test_kind_discriminates_union(self):
        adapter = TypeAdapter(GenerationState)

        state = adapter.validate_python({"kind": "writing_files", "progress": 2, "total": 5})

        assert isinstance(state, WritingFiles)
        assert state.kind == GenerationStateKind.WRITING_FILES
        assert (state.progress, state.total) == (2, 5)

    def test_failed_serialization_omits_cause(self):
        error = GenerationError(
            error_type=GenerationErrorType.FILE_SYSTEM_ERROR,
            message="disk said no",
            cause=OSError("EACCES"),
            failed_index=3,
        )

        dumped = Failed(error=error).model_dump(mode="json")

        assert dumped["kind"] == "failed"
        assert dumped["error"]["error_type"] == "file_system_error"
        assert dumped["error"]["failed_index"] == 3
        assert "cause" not in dumped["error"]


class TestProviderIdentifier:
    def test_str_is_value(self):
        assert str(ProviderIdentifier("gemini-cli")) == "gemini-cli"

    def test_is_hashable_and_comparable(self):
        assert ProviderIdentifier("a") == ProviderIdentifier("a")
        assert len({ProviderIdentifier("a"), ProviderIdentifier("a")}) == 1


@pytest.mark.parametrize("error_type", list(GenerationErrorType))
def test_error_types_are_lowercase_names(error_type):
    assert error_type.value == error_type.name.lower()
