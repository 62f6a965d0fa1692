"""Unit tests for ProjectFile and ProjectStructure."""

import pytest
from pydantic import ValidationError

from aiproj.domain.models.project import ProjectFile, ProjectStructure


class TestProjectFile:
    def test_derived_parts_of_nested_path(self):
        f = ProjectFile(path="project/src/Main.kt", content="")

        assert f.extension == "kt"
        assert f.filename == "Main.kt"
        assert f.directory == "project/src"

    def test_top_level_file_has_empty_directory(self):
        f = ProjectFile(path="README.md", content="# hi")

        assert f.directory == ""
        assert f.filename == f.path

    @pytest.mark.parametrize("path", ["Makefile", "src/LICENSE"])
    def test_no_extension(self, path):
        assert ProjectFile(path=path, content="").extension == ""

    @pytest.mark.parametrize(
        "path", ["a/b/c.txt", "x.py", "deep/er/still/file.tar.gz", "dir/Makefile"]
    )
    def test_directory_and_filename_rebuild_path(self, path):
        f = ProjectFile(path=path, content="")

        rebuilt = f"{f.directory}/{f.filename}" if f.directory else f.filename
        assert rebuilt == path

    def test_size_counts_utf8_bytes(self):
        f = ProjectFile(path="a.txt", content="héllo ✓")

        assert f.size == len("héllo ✓".encode("utf-8"))
        assert f.size > len(f.content)

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            ProjectFile(path="", content="x")

    def test_absolute_path_rejected(self):
        with pytest.raises(ValidationError):
            ProjectFile(path="/etc/passwd", content="x")

    def test_is_frozen(self):
        f = ProjectFile(path="a.txt", content="x")

        with pytest.raises(ValidationError):
            f.content = "y"


class TestProjectStructure:
    def test_build_derives_metadata(self):
        files = [
            ProjectFile(path="a.txt", content="abc"),
            ProjectFile(path="b/c.txt", content="ü"),
        ]

        structure = ProjectStructure.build("Demo", files)

        assert structure.metadata.total_files == 2
        assert structure.metadata.total_size == 3 + 2
        assert structure.metadata.generated_at is not None
        assert structure.metadata.provider_used is None
        assert structure.paths == ["a.txt", "b/c.txt"]

    def test_effective_files_last_occurrence_wins_in_first_position(self):
        structure = ProjectStructure.build(
            "Demo",
            [
                ProjectFile(path="a.txt", content="first"),
                ProjectFile(path="b.txt", content="b"),
                ProjectFile(path="a.txt", content="second"),
            ],
        )

        effective = structure.effective_files()

        assert [f.path for f in effective] == ["a.txt", "b.txt"]
        assert effective[0].content == "second"
        # Duplicates are still reported as parsed
        assert structure.metadata.total_files == 3

    def test_with_provenance_keeps_files(self):
        structure = ProjectStructure.build("Demo", [ProjectFile(path="a.txt", content="x")])

        labelled = structure.with_provenance("claude-code", "sonnet")

        assert labelled.metadata.provider_used == "claude-code"
        assert labelled.metadata.option_used == "sonnet"
        assert labelled.metadata.total_files == 1
        assert labelled.files == structure.files
        assert structure.metadata.provider_used is None

    def test_structurally_equal_ignores_timestamp(self):
        files = [ProjectFile(path="a.txt", content="x")]
        first = ProjectStructure.build("Demo", files)
        second = ProjectStructure.build("Demo", files)

        assert first.structurally_equal(second)
        assert not first.structurally_equal(ProjectStructure.build("Other", files))
