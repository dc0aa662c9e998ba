"""Local file-system executor for text-editor commands.

Line numbers are 0-indexed.  ``str_replace`` replaces lines
``line_from..line_to`` (inclusive) with ``content``; ``insert`` puts
``content`` after line ``after`` (``-1`` inserts at the top).

Every modification of an existing file is preceded by a backup.  Backups
taken in this process are remembered per path so that ``undo_edit`` can
restore the most recent one.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from cedit.editor.storage import WorkspaceFileStore, line_stats, split_lines
from cedit.models.enums import CommandKind
from cedit.models.events import ErrorRaised, FileCreated, FileEdited, FileViewed

if TYPE_CHECKING:
    from cedit.models.commands import CommandEnvelope
    from cedit.models.events import DomainEvent
    from cedit.settings import CeditSettings

logger = logging.getLogger(__name__)


def _error(envelope: CommandEnvelope, message: str, code: str) -> ErrorRaised:
    logger.error("%s (command %s, path %s)", message, envelope.id, envelope.path)
    return ErrorRaised(message=message, code=code, path=envelope.path, command_id=envelope.id)


class LocalEditExecutor:
    """Applies commands to files below *root* (default: the working directory)."""

    def __init__(self, root: str | Path | None = None) -> None:
        self._root = Path(root) if root is not None else None
        self._backups: dict[str, list[str]] = {}

    def backups_for(self, path: str) -> list[str]:
        """Backups taken for *path* in this process, oldest first."""
        return list(self._backups.get(path, []))

    def _store(self, settings: CeditSettings) -> WorkspaceFileStore:
        return WorkspaceFileStore(self._root, backup_dir=settings.backup_dir, dry_run=settings.dry_run)

    async def _backup(self, store: WorkspaceFileStore, path: str) -> str | None:
        backup_path = await store.backup(path)
        if backup_path is not None:
            self._backups.setdefault(path, []).append(backup_path)
            logger.info("Backed up %s to %s", path, backup_path)
        return backup_path

    # -- Dispatch --------------------------------------------------------------

    async def execute(self, envelope: CommandEnvelope, settings: CeditSettings) -> DomainEvent:
        logger.info("Dispatching command %s (kind=%s, path=%s)", envelope.id, envelope.kind, envelope.path)
        missing = envelope.missing_base_fields()
        if missing:
            return _error(
                envelope,
                f"Invalid command received: missing {', '.join(missing)}. ID: {envelope.id}",
                "invalid_command",
            )

        store = self._store(settings)
        try:
            match envelope.command_kind:
                case CommandKind.VIEW:
                    return await self._view(envelope, store)
                case CommandKind.STR_REPLACE:
                    return await self._replace(envelope, store)
                case CommandKind.INSERT:
                    return await self._insert(envelope, store)
                case CommandKind.CREATE:
                    return await self._create(envelope, store)
                case CommandKind.UNDO_EDIT:
                    return await self._undo(envelope, store)
                case _:
                    return _error(envelope, f"Unsupported command kind: {envelope.kind}", "unsupported_command")
        except (OSError, ValueError) as exc:
            # Missing files, permission problems, undecodable content and
            # paths outside the workspace all end up here.
            return _error(envelope, str(exc), "io_error")

    # -- Handlers --------------------------------------------------------------

    async def _view(self, envelope: CommandEnvelope, store: WorkspaceFileStore) -> DomainEvent:
        path = envelope.path
        lines = await store.read_lines(path)
        count = len(lines)
        if envelope.line_from is not None or envelope.line_to is not None:
            start = envelope.line_from or 0
            end = envelope.line_to if envelope.line_to is not None else count - 1
            if start < 0 or end < start or start >= count:
                return _error(envelope, f"Line range {start}..{end} out of bounds for {path} ({count} lines)", "bad_range")
            count = min(end, count - 1) - start + 1
        return FileViewed(path=path, lines=count, command_id=envelope.id)

    async def _replace(self, envelope: CommandEnvelope, store: WorkspaceFileStore) -> DomainEvent:
        line_from, line_to, content = envelope.line_from, envelope.line_to, envelope.content
        if line_from is None or line_to is None or content is None:
            return _error(envelope, "Invalid str_replace command: missing required fields", "invalid_command")

        path = envelope.path
        old_lines = await store.read_lines(path)
        if line_from < 0 or line_to < line_from or line_to >= len(old_lines):
            return _error(
                envelope,
                f"Line range {line_from}..{line_to} out of bounds for {path} ({len(old_lines)} lines)",
                "bad_range",
            )

        backup_path = await self._backup(store, path)
        new_lines = [*old_lines[:line_from], *split_lines(content), *old_lines[line_to + 1 :]]
        count = await store.write_lines(path, new_lines)
        return FileEdited(
            path=path,
            lines=count,
            stats=line_stats(old_lines, new_lines),
            backup_path=backup_path,
            command_id=envelope.id,
        )

    async def _insert(self, envelope: CommandEnvelope, store: WorkspaceFileStore) -> DomainEvent:
        after, content = envelope.after, envelope.content
        if after is None or content is None:
            return _error(envelope, "Invalid insert command: missing required fields", "invalid_command")

        path = envelope.path
        old_lines = await store.read_lines(path)
        if after < -1 or after >= len(old_lines):
            return _error(envelope, f"Insert position {after} out of bounds for {path} ({len(old_lines)} lines)", "bad_range")

        backup_path = await self._backup(store, path)
        new_lines = [*old_lines[: after + 1], *split_lines(content), *old_lines[after + 1 :]]
        count = await store.write_lines(path, new_lines)
        return FileEdited(
            path=path,
            lines=count,
            stats=line_stats(old_lines, new_lines),
            backup_path=backup_path,
            command_id=envelope.id,
        )

    async def _create(self, envelope: CommandEnvelope, store: WorkspaceFileStore) -> DomainEvent:
        content = envelope.content
        if content is None:
            return _error(envelope, "Invalid create command: missing content field", "invalid_command")

        path = envelope.path
        if not await store.exists(path):
            count = await store.write(path, content)
            return FileCreated(path=path, lines=count, command_id=envelope.id)

        # Overwriting an existing file is an edit.
        old_lines = await store.read_lines(path)
        backup_path = await self._backup(store, path)
        count = await store.write(path, content)
        return FileEdited(
            path=path,
            lines=count,
            stats=line_stats(old_lines, split_lines(content)),
            backup_path=backup_path,
            command_id=envelope.id,
        )

    async def _undo(self, envelope: CommandEnvelope, store: WorkspaceFileStore) -> DomainEvent:
        path = envelope.path
        history = self._backups.get(path)
        if not history:
            return _error(envelope, f"No backup available to undo for {path}", "undo_unavailable")

        backup_path = history[-1]
        current = await store.read_lines(path) if await store.exists(path) else []
        restored = await store.restore(path, backup_path)
        history.pop()
        logger.info("Restored %s from %s", path, backup_path)
        return FileEdited(
            path=path,
            lines=len(restored),
            stats=line_stats(current, restored),
            command_id=envelope.id,
        )
