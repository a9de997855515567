"""Tests for the per-project filesystem mirror."""

from __future__ import annotations

from pathlib import Path

import pytest

from collabide.exceptions import CollabValidationError
from collabide.execution.mirror import FilesystemMirror
from helpers import mirrored_names, mirrored_text


def test_write_creates_project_directory_lazily(mirror: FilesystemMirror, scratch_root: Path) -> None:
    assert not (scratch_root / "p1").exists()

    path = mirror.write("p1", "app.py", "print('hi')")

    assert path == scratch_root.resolve() / "p1" / "app.py"
    assert path.read_text(encoding="utf-8") == "print('hi')"
    assert mirrored_text(mirror, "p1", "app.py") == "print('hi')"


def test_ensure_project_dir_is_idempotent(mirror: FilesystemMirror) -> None:
    first = mirror.ensure_project_dir("p1")
    second = mirror.ensure_project_dir("p1")

    assert first == second
    assert first.is_dir()


def test_remove_reports_whether_file_existed(mirror: FilesystemMirror) -> None:
    mirror.write("p1", "gone.txt", "x")

    assert mirror.remove("p1", "gone.txt") is True
    assert mirror.remove("p1", "gone.txt") is False
    assert mirrored_text(mirror, "p1", "gone.txt") is None


def test_rebuild_replaces_mirror_with_exact_file_set(mirror: FilesystemMirror) -> None:
    mirror.write("p1", "stale.txt", "old")
    mirror.write("p1", "keep.txt", "old")

    mirror.rebuild("p1", [("keep.txt", "new"), ("fresh.txt", "f")])
    mirror.rebuild("p1", [("keep.txt", "new"), ("fresh.txt", "f")])

    assert mirrored_names(mirror, "p1") == ["fresh.txt", "keep.txt"]
    assert mirrored_text(mirror, "p1", "keep.txt") == "new"


@pytest.mark.parametrize("name", ["", "   ", ".", "..", "../escape.txt", "dir/file.txt", "dir\\file.txt"])
def test_names_that_leave_the_project_directory_are_rejected(mirror: FilesystemMirror, name: str) -> None:
    with pytest.raises(CollabValidationError):
        mirror.write("p1", name, "x")


def test_project_id_is_validated_too(mirror: FilesystemMirror) -> None:
    with pytest.raises(CollabValidationError):
        mirror.project_dir("../other")
