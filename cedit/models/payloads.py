"""Hub payload models, one per event kind.

Kind-specific fields are declared optional on purpose: the payload contract
validator (``cedit.bus.validator``) is what enforces them, so that validation
can be switched off on the hub.
"""

from __future__ import annotations

from typing import TypeAlias, assert_never

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cedit.models.enums import EventKind
from cedit.models.events import DomainEvent, EditStats
from cedit.settings import CeditSettings


class SummaryStats(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    files_edited: int = 0
    files_created: int = 0
    backups_created: int = 0
    total_edits: EditStats = Field(default_factory=EditStats)


class BusPayload(BaseModel):
    """Base of every payload; ``timestamp`` is stamped by the hub when absent."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    timestamp: float | None = None


# -- Init --------------------------------------------------------------------


class InitConfigPayload(BusPayload):
    config: CeditSettings | None = None


class InitCompletePayload(BusPayload):
    success: bool = True
    message: str | None = None


# -- Domain ------------------------------------------------------------------


class DomainEventPayload(BusPayload):
    event: DomainEvent | None = None


# -- Finish ------------------------------------------------------------------


class FinishSummaryPayload(BusPayload):
    stats: SummaryStats | None = None
    duration: int | None = None
    """Wall-clock run duration in milliseconds."""


class FinishAbortPayload(BusPayload):
    reason: str | None = None
    code: str | None = None


AnyPayload: TypeAlias = (
    InitConfigPayload | InitCompletePayload | DomainEventPayload | FinishSummaryPayload | FinishAbortPayload
)


def payload_type_for(kind: EventKind) -> type[BusPayload]:
    """Return the payload model that travels with *kind*."""
    match kind:
        case EventKind.INIT_CONFIG:
            return InitConfigPayload
        case EventKind.INIT_COMPLETE:
            return InitCompletePayload
        case (
            EventKind.FILE_VIEWED
            | EventKind.FILE_EDITED
            | EventKind.FILE_CREATED
            | EventKind.BACKUP_CREATED
            | EventKind.ERROR
        ):
            return DomainEventPayload
        case EventKind.SUMMARY:
            return FinishSummaryPayload
        case EventKind.ABORT:
            return FinishAbortPayload
        case _:
            assert_never(kind)
