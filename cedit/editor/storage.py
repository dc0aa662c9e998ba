"""Working-directory file store used by the edit executor.

All paths handed to the store are relative to a root (the working directory
by default) and must stay inside it.  Backups are copied to::

    {backup_dir}/{relative dir}/{name}.{stamp}.bak

Uses ``anyio.to_thread.run_sync`` for non-blocking file I/O.

Writes are atomic: data is written to a temporary file in the same directory,
then renamed to the target path.

In dry-run mode writes go to ``<name>.updated<ext>`` next to the original and
no backups are taken.  Reads prefer that sibling when it exists, so a chain
of edits in one dry run builds on itself.
"""

from __future__ import annotations

import contextlib
import os
import re
import shutil
import tempfile
import time
from functools import partial
from pathlib import Path

from anyio import to_thread

from cedit.errors import WorkspacePathError
from cedit.models.events import EditStats

_LINE_BREAK = re.compile(r"\r?\n")


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` or ``\\r\\n``.  A trailing newline yields a final empty line."""
    return _LINE_BREAK.split(text)


def line_stats(old_lines: list[str], new_lines: list[str]) -> EditStats:
    """Positional line diff: compare line ``i`` of each side.

    Lines only present in the new text count as added, lines only present in
    the old text as removed, differing lines at the same index as changed.
    """
    added = removed = changed = 0
    for i in range(max(len(old_lines), len(new_lines))):
        if i >= len(old_lines):
            added += 1
        elif i >= len(new_lines):
            removed += 1
        elif old_lines[i] != new_lines[i]:
            changed += 1
    return EditStats(added=added, removed=removed, changed=changed)


def dry_run_path(rel_path: str) -> str:
    """``src/app.py`` -> ``src/app.updated.py``; ``Makefile`` -> ``Makefile.updated``."""
    p = Path(rel_path)
    return str(p.with_name(f"{p.stem}.updated{p.suffix}"))


class WorkspaceFileStore:
    """Reads, writes and backs up files below *root*."""

    def __init__(
        self,
        root: str | Path | None = None,
        *,
        backup_dir: str | Path,
        dry_run: bool = False,
    ) -> None:
        self._root = Path(root or Path.cwd()).resolve()
        self._backup_dir = Path(backup_dir)
        self.dry_run = dry_run

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, rel_path: str) -> Path:
        """Absolute path for *rel_path*; raises ``WorkspacePathError`` outside the root."""
        target = (self._root / rel_path).resolve()
        if not target.is_relative_to(self._root):
            raise WorkspacePathError(rel_path)
        return target

    def _read_target(self, rel_path: str) -> Path:
        if self.dry_run:
            updated = self.resolve(dry_run_path(rel_path))
            if updated.exists():
                return updated
        return self.resolve(rel_path)

    def _write_target(self, rel_path: str) -> Path:
        return self.resolve(dry_run_path(rel_path) if self.dry_run else rel_path)

    # -- Read ------------------------------------------------------------------

    async def exists(self, rel_path: str) -> bool:
        return await to_thread.run_sync(self._read_target(rel_path).exists)

    async def read_lines(self, rel_path: str) -> list[str]:
        raw = await to_thread.run_sync(partial(_read_file, self._read_target(rel_path)))
        return split_lines(raw)

    # -- Write -----------------------------------------------------------------

    async def write(self, rel_path: str, content: str) -> int:
        """Write *content* and return its line count."""
        target = self._write_target(rel_path)
        await to_thread.run_sync(partial(_atomic_write, target, content))
        return len(split_lines(content))

    async def write_lines(self, rel_path: str, lines: list[str]) -> int:
        return await self.write(rel_path, "\n".join(lines))

    # -- Backups ---------------------------------------------------------------

    async def backup(self, rel_path: str) -> str | None:
        """Copy the current file into the backup directory.

        Returns the backup path, or ``None`` in dry-run mode.
        """
        if self.dry_run:
            return None
        source = self.resolve(rel_path)
        rel = source.relative_to(self._root)
        dest = self._backup_dir / rel.parent / f"{rel.name}.{time.time_ns()}.bak"
        await to_thread.run_sync(partial(_copy_file, source, dest))
        return str(dest)

    async def restore(self, rel_path: str, backup_path: str) -> list[str]:
        """Write the backup's content back over *rel_path*; return the restored lines."""
        raw = await to_thread.run_sync(partial(_read_file, Path(backup_path)))
        await to_thread.run_sync(partial(_atomic_write, self.resolve(rel_path), raw))
        return split_lines(raw)


# -- Sync helpers (run in thread pool) -----------------------------------------


def _atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename.

    An existing file keeps its permission bits.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(data)
        if path.exists():
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def _read_file(path: Path) -> str:
    """Read file contents.  Raises ``FileNotFoundError`` if missing."""
    return path.read_text(encoding="utf-8")


def _copy_file(source: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, dest)
