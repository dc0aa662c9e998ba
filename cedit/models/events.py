"""Domain events -- the post-execution outcome of one command envelope."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cedit.models.enums import DomainEventType


class EditStats(BaseModel):
    """Line-level change counters for one edit (or a whole run)."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    added: int = 0
    removed: int = 0
    changed: int = 0

    def __add__(self, other: EditStats) -> EditStats:
        return EditStats(
            added=self.added + other.added,
            removed=self.removed + other.removed,
            changed=self.changed + other.changed,
        )


class _DomainEventBase(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    command_id: str | None = None
    """Id of the envelope this event resulted from (``None`` for run-level failures)."""


class FileViewed(_DomainEventBase):
    type: Literal[DomainEventType.FILE_VIEWED] = DomainEventType.FILE_VIEWED
    path: str
    lines: int


class FileEdited(_DomainEventBase):
    type: Literal[DomainEventType.FILE_EDITED] = DomainEventType.FILE_EDITED
    path: str
    lines: int
    stats: EditStats | None = None
    backup_path: str | None = None


class FileCreated(_DomainEventBase):
    type: Literal[DomainEventType.FILE_CREATED] = DomainEventType.FILE_CREATED
    path: str
    lines: int


class BackupCreated(_DomainEventBase):
    type: Literal[DomainEventType.BACKUP_CREATED] = DomainEventType.BACKUP_CREATED
    original_path: str
    backup_path: str


class ErrorRaised(_DomainEventBase):
    type: Literal[DomainEventType.ERROR_RAISED] = DomainEventType.ERROR_RAISED
    message: str
    code: str | None = None
    path: str | None = None


DomainEvent = Annotated[
    FileViewed | FileEdited | FileCreated | BackupCreated | ErrorRaised,
    Field(discriminator="type"),
]
