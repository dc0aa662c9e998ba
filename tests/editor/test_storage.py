"""Unit tests for the workspace file store."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from cedit.editor.storage import WorkspaceFileStore, dry_run_path, line_stats, split_lines
from cedit.errors import WorkspacePathError
from cedit.models.events import EditStats

# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def test_split_lines_handles_crlf() -> None:
    assert split_lines("a\r\nb\nc") == ["a", "b", "c"]
    assert split_lines("a\n") == ["a", ""]


def test_line_stats_positional() -> None:
    assert line_stats(["a", "b"], ["a", "x", "c"]) == EditStats(added=1, removed=0, changed=1)
    assert line_stats(["a", "b", "c"], ["a"]) == EditStats(added=0, removed=2, changed=0)
    assert line_stats([], []) == EditStats()


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("src/app.py", "src/app.updated.py"),
        ("notes.txt", "notes.updated.txt"),
        ("Makefile", "Makefile.updated"),
    ],
)
def test_dry_run_path(path: str, expected: str) -> None:
    assert dry_run_path(path) == expected


# ---------------------------------------------------------------------------
# Path confinement
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("path", ["../outside.txt", "/etc/passwd", "a/../../b"])
def test_paths_outside_root_rejected(tmp_path: Path, path: str) -> None:
    store = WorkspaceFileStore(tmp_path, backup_dir=tmp_path / "bk")
    with pytest.raises(WorkspacePathError, match="Path escapes workspace"):
        store.resolve(path)


def test_nested_path_allowed(tmp_path: Path) -> None:
    store = WorkspaceFileStore(tmp_path, backup_dir=tmp_path / "bk")
    assert store.resolve("a/b/c.txt") == tmp_path.resolve() / "a" / "b" / "c.txt"


def test_defaults_to_working_directory(workspace: Path) -> None:
    store = WorkspaceFileStore(backup_dir=workspace / "bk")
    assert store.root == workspace.resolve()


# ---------------------------------------------------------------------------
# Read / write
# ---------------------------------------------------------------------------


async def test_write_creates_parent_dirs_and_counts_lines(tmp_path: Path) -> None:
    store = WorkspaceFileStore(tmp_path, backup_dir=tmp_path / "bk")
    count = await store.write("deep/dir/file.txt", "one\ntwo\nthree")
    assert count == 3
    assert (tmp_path / "deep" / "dir" / "file.txt").read_text(encoding="utf-8") == "one\ntwo\nthree"
    assert await store.read_lines("deep/dir/file.txt") == ["one", "two", "three"]


async def test_write_keeps_permissions(tmp_path: Path) -> None:
    target = tmp_path / "script.sh"
    target.write_text("echo hi", encoding="utf-8")
    os.chmod(target, 0o755)
    store = WorkspaceFileStore(tmp_path, backup_dir=tmp_path / "bk")

    await store.write("script.sh", "echo bye")

    assert stat.S_IMODE(target.stat().st_mode) == 0o755


async def test_write_leaves_no_temp_files(tmp_path: Path) -> None:
    store = WorkspaceFileStore(tmp_path, backup_dir=tmp_path / "bk")
    await store.write("a.txt", "x")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["a.txt"]


async def test_read_missing_file_raises(tmp_path: Path) -> None:
    store = WorkspaceFileStore(tmp_path, backup_dir=tmp_path / "bk")
    with pytest.raises(FileNotFoundError):
        await store.read_lines("missing.txt")


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------


async def test_dry_run_writes_sibling_and_reads_it_back(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("original", encoding="utf-8")
    store = WorkspaceFileStore(tmp_path, backup_dir=tmp_path / "bk", dry_run=True)

    assert await store.read_lines("a.txt") == ["original"]
    await store.write("a.txt", "changed")

    assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "original"
    assert (tmp_path / "a.updated.txt").read_text(encoding="utf-8") == "changed"
    assert await store.read_lines("a.txt") == ["changed"]


async def test_dry_run_takes_no_backup(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("x", encoding="utf-8")
    store = WorkspaceFileStore(tmp_path, backup_dir=tmp_path / "bk", dry_run=True)
    assert await store.backup("a.txt") is None
    assert not (tmp_path / "bk").exists()


# ---------------------------------------------------------------------------
# Backups
# ---------------------------------------------------------------------------


async def test_backup_mirrors_relative_directory(tmp_path: Path) -> None:
    root = tmp_path / "ws"
    (root / "src").mkdir(parents=True)
    (root / "src" / "a.py").write_text("print(1)", encoding="utf-8")
    store = WorkspaceFileStore(root, backup_dir=tmp_path / "bk")

    backup = Path(await store.backup("src/a.py"))

    assert backup.parent == tmp_path / "bk" / "src"
    assert backup.name.startswith("a.py.")
    assert backup.name.endswith(".bak")
    assert backup.read_text(encoding="utf-8") == "print(1)"


async def test_restore_from_backup(tmp_path: Path) -> None:
    root = tmp_path / "ws"
    root.mkdir()
    (root / "a.txt").write_text("v1", encoding="utf-8")
    store = WorkspaceFileStore(root, backup_dir=tmp_path / "bk")
    backup = await store.backup("a.txt")
    await store.write("a.txt", "v2")

    restored = await store.restore("a.txt", backup)

    assert restored == ["v1"]
    assert (root / "a.txt").read_text(encoding="utf-8") == "v1"
