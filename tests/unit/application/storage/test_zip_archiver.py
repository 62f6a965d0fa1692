"""Unit tests for ZipArchiver."""

import os
import zipfile
from pathlib import Path

import pytest

from aiproj.application.storage import ArchiveError, ProjectWriter, ZipArchiver
from aiproj.domain.models.project import ProjectFile, ProjectStructure


def _written(tmp_path: Path, *files: tuple[str, str]) -> tuple[ProjectStructure, Path]:
    structure = ProjectStructure.build("Demo", [ProjectFile(path=p, content=c) for p, c in files])
    project_dir = ProjectWriter(tmp_path / "out", check_free_space=False).write(structure)
    return structure, project_dir


def test_entries_under_root_in_order(tmp_path: Path):
    structure, project_dir = _written(tmp_path, ("b.txt", "b"), ("a/x.py", "x = 1\n"), ("README.md", "ü"))

    archive = ZipArchiver(tmp_path / "zips").create(structure, project_dir)

    with zipfile.ZipFile(archive) as zf:
        assert zf.namelist() == ["Demo/b.txt", "Demo/a/x.py", "Demo/README.md"]
        assert zf.read("Demo/README.md").decode("utf-8") == "ü"
        assert zf.testzip() is None


def test_duplicate_paths_archived_once(tmp_path: Path):
    structure, project_dir = _written(tmp_path, ("a.txt", "1"), ("b.txt", "2"), ("a.txt", "3"))

    archive = ZipArchiver(tmp_path / "zips").create(structure, project_dir)

    with zipfile.ZipFile(archive) as zf:
        assert zf.namelist() == ["Demo/a.txt", "Demo/b.txt"]
        assert zf.read("Demo/a.txt") == b"3"


def test_archive_name_and_collisions(tmp_path: Path, monkeypatch):
    monkeypatch.setattr("aiproj.application.storage.zip_archiver.time.time", lambda: 1700000000.5)
    archiver = ZipArchiver(tmp_path)

    first = archiver.archive_path("Demo")
    first.write_bytes(b"")
    second = archiver.archive_path("Demo")

    assert first.name == "Demo_1700000000500.zip"
    assert second.name == "Demo_1700000000500_1.zip"


def test_missing_source_file_raises_and_cleans_up(tmp_path: Path):
    structure, project_dir = _written(tmp_path, ("a.txt", "1"), ("b.txt", "2"))
    (project_dir / "b.txt").unlink()
    archive_dir = tmp_path / "zips"

    with pytest.raises(ArchiveError):
        ZipArchiver(archive_dir).create(structure, project_dir)

    assert list(archive_dir.iterdir()) == []


def _old_archive(archive_dir: Path, name: str, age: int) -> Path:
    archive_dir.mkdir(parents=True, exist_ok=True)
    path = archive_dir / name
    path.write_bytes(b"")
    stamp = 1_600_000_000 - age
    os.utime(path, (stamp, stamp))
    return path


def test_keeps_only_newest_archives(tmp_path: Path):
    archive_dir = tmp_path / "zips"
    newest_old = _old_archive(archive_dir, "Old_3.zip", age=10)
    _old_archive(archive_dir, "Old_2.zip", age=20)
    _old_archive(archive_dir, "Old_1.zip", age=30)
    structure, project_dir = _written(tmp_path, ("a.txt", "1"))

    archive = ZipArchiver(archive_dir, keep_archives=2).create(structure, project_dir)

    assert sorted(p.name for p in archive_dir.iterdir()) == sorted([archive.name, newest_old.name])


def test_prune_ignores_other_files(tmp_path: Path):
    archive_dir = tmp_path / "zips"
    _old_archive(archive_dir, "Old.zip", age=10)
    notes = archive_dir / "notes.txt"
    notes.write_text("keep me", encoding="utf-8")

    removed = ZipArchiver(archive_dir, keep_archives=1).prune()

    assert removed == []
    assert notes.exists()


def test_no_limit_keeps_everything(tmp_path: Path):
    archive_dir = tmp_path / "zips"
    for i in range(3):
        _old_archive(archive_dir, f"Old_{i}.zip", age=i)
    structure, project_dir = _written(tmp_path, ("a.txt", "1"))

    ZipArchiver(archive_dir, keep_archives=None).create(structure, project_dir)

    assert len(list(archive_dir.glob("*.zip"))) == 4


def test_list_archives_newest_first(tmp_path: Path):
    archive_dir = tmp_path / "zips"
    _old_archive(archive_dir, "b.zip", age=5)
    _old_archive(archive_dir, "a.zip", age=50)
    _old_archive(archive_dir, "c.zip", age=1)

    names = [p.name for p in ZipArchiver(archive_dir).list_archives()]

    assert names == ["c.zip", "b.zip", "a.zip"]


def test_keep_archives_must_be_positive(tmp_path: Path):
    with pytest.raises(ValueError):
        ZipArchiver(tmp_path, keep_archives=0)
