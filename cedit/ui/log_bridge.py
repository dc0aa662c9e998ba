"""Hub subscriber that mirrors every published event into the log."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from cedit.bus.hub import redact_payload
from cedit.models.enums import EventKind

if TYPE_CHECKING:
    from cedit.bus.hub import EventHub


class LogBridge:
    def __init__(self, hub: EventHub) -> None:
        self._hub = hub
        self._attached = False

    def attach(self) -> None:
        if not self._attached:
            self._hub.subscribe_any(self._on_event)
            self._attached = True

    def detach(self) -> None:
        if self._attached:
            self._hub.unsubscribe_any(self._on_event)
            self._attached = False

    def _on_event(self, kind: str, payload: Any) -> None:
        match kind:
            case EventKind.ABORT:
                logger.error("[{}] {}", kind, payload.reason)
            case EventKind.ERROR:
                logger.warning("[{}] {}", kind, payload.event.message if payload.event else None)
            case EventKind.INIT_CONFIG:
                logger.debug("[{}] {}", kind, redact_payload(payload))
            case _:
                logger.info("[{}] {}", kind, redact_payload(payload))
