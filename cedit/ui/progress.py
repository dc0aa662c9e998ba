"""Terminal progress display driven by ``domain:*`` events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import click
from loguru import logger

from cedit.models.enums import EventKind, EventNamespace

if TYPE_CHECKING:
    from cedit.bus.hub import EventHub


@dataclass
class ProgressInfo:
    viewed: int = 0
    edited: int = 0
    created: int = 0
    errors: int = 0

    def render(self) -> str:
        return (
            f"Progress: {click.style(str(self.viewed), fg='yellow')} files viewed, "
            f"{click.style(str(self.edited), fg='green')} edited, "
            f"{click.style(str(self.created), fg='cyan')} created, "
            f"{click.style(str(self.errors), fg='red')} errors"
        )


class ProgressMonitor:
    """Counts domain events and echoes a progress line after each one."""

    def __init__(self, hub: EventHub, *, echo: bool = True) -> None:
        self._hub = hub
        self._echo = echo
        self._progress = ProgressInfo()
        self._monitoring = False

    @property
    def monitoring(self) -> bool:
        return self._monitoring

    def start(self) -> None:
        if self._monitoring:
            logger.warning("Progress monitor is already running")
            return
        logger.debug("Starting progress monitor")
        self._progress = ProgressInfo()
        self._hub.subscribe_namespace(EventNamespace.DOMAIN, self._on_domain_event)
        self._monitoring = True

    def stop(self) -> None:
        if not self._monitoring:
            return
        logger.debug("Stopping progress monitor")
        self._hub.unsubscribe_namespace(EventNamespace.DOMAIN, self._on_domain_event)
        self._monitoring = False

    def get_progress(self) -> ProgressInfo:
        return ProgressInfo(**vars(self._progress))

    def _on_domain_event(self, kind: str, payload: Any) -> None:
        match kind:
            case EventKind.FILE_VIEWED:
                self._progress.viewed += 1
            case EventKind.FILE_EDITED:
                self._progress.edited += 1
            case EventKind.FILE_CREATED:
                self._progress.created += 1
            case EventKind.ERROR:
                self._progress.errors += 1
            case _:
                return
        if self._echo:
            click.echo(self._progress.render())
