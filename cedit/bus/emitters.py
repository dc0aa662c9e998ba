"""Publishing helpers -- build the right payload for each event kind."""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from cedit.models.enums import DomainEventType, EventKind
from cedit.models.payloads import (
    DomainEventPayload,
    FinishAbortPayload,
    FinishSummaryPayload,
    InitCompletePayload,
    InitConfigPayload,
    SummaryStats,
)

if TYPE_CHECKING:
    from cedit.bus.hub import EventHub
    from cedit.models.events import DomainEvent
    from cedit.settings import CeditSettings


def kind_for_event(event: DomainEvent) -> EventKind:
    """Map a domain event to the ``domain:*`` kind it is published under."""
    event_type = DomainEventType(event.type)
    match event_type:
        case DomainEventType.FILE_VIEWED:
            return EventKind.FILE_VIEWED
        case DomainEventType.FILE_EDITED:
            return EventKind.FILE_EDITED
        case DomainEventType.FILE_CREATED:
            return EventKind.FILE_CREATED
        case DomainEventType.BACKUP_CREATED:
            return EventKind.BACKUP_CREATED
        case DomainEventType.ERROR_RAISED:
            return EventKind.ERROR
        case _:
            assert_never(event_type)


def emit_init_config(hub: EventHub, config: CeditSettings) -> bool:
    return hub.publish(EventKind.INIT_CONFIG, InitConfigPayload(config=config))


def emit_init_complete(hub: EventHub, *, success: bool = True, message: str | None = None) -> bool:
    return hub.publish(EventKind.INIT_COMPLETE, InitCompletePayload(success=success, message=message))


def emit_domain_event(hub: EventHub, event: DomainEvent) -> bool:
    return hub.publish(kind_for_event(event), DomainEventPayload(event=event))


def emit_finish_summary(hub: EventHub, stats: SummaryStats, duration_ms: int) -> bool:
    return hub.publish(EventKind.SUMMARY, FinishSummaryPayload(stats=stats, duration=duration_ms))


def emit_finish_abort(hub: EventHub, reason: str, code: str | None = None) -> bool:
    return hub.publish(EventKind.ABORT, FinishAbortPayload(reason=reason, code=code))
