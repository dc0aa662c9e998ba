"""Completion handling: turn the terminal hub event into output and an exit code."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from loguru import logger

from cedit.models.enums import EventKind

if TYPE_CHECKING:
    from cedit.bus.hub import EventHub
    from cedit.models.payloads import FinishAbortPayload, FinishSummaryPayload

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class CompletionHandler:
    """Listens once for ``finish:summary`` or ``finish:abort``.

    Whichever arrives first sets ``exit_code`` and removes both listeners.
    ``exit_code`` stays ``None`` while the run is still going.
    """

    def __init__(self, hub: EventHub, *, echo: bool = True) -> None:
        self._hub = hub
        self._echo = echo
        self._listening = False
        self.exit_code: int | None = None

    @property
    def listening(self) -> bool:
        return self._listening

    def start(self) -> None:
        if self._listening:
            logger.warning("Completion handler is already listening")
            return
        logger.debug("Awaiting run completion (summary or abort)")
        self.exit_code = None
        self._hub.subscribe_once(EventKind.SUMMARY, self._on_summary)
        self._hub.subscribe_once(EventKind.ABORT, self._on_abort)
        self._listening = True

    def stop(self) -> None:
        if not self._listening:
            return
        logger.debug("Stopping completion listeners")
        self._hub.unsubscribe(EventKind.SUMMARY, self._on_summary)
        self._hub.unsubscribe(EventKind.ABORT, self._on_abort)
        self._listening = False

    # -- Handlers --------------------------------------------------------------

    def _on_summary(self, payload: FinishSummaryPayload) -> None:
        stats = payload.stats
        if self._echo and stats is not None:
            edits = stats.total_edits
            click.echo(
                f"\n{click.style('Edits applied:', fg='green')} "
                f"{click.style(f'+{edits.added}', fg='bright_green')} added, "
                f"{click.style(f'-{edits.removed}', fg='bright_red')} removed, "
                f"{click.style(f'~{edits.changed}', fg='bright_yellow')} changed."
            )
            click.echo(
                f"{click.style('Files:', fg='blue')} {stats.files_edited} edited, "
                f"{stats.files_created} created, {stats.backups_created} backed up."
            )
            click.echo(f"{click.style('Duration:', fg='bright_black')} {(payload.duration or 0) / 1000:.2f}s")
        self.exit_code = EXIT_SUCCESS
        self.stop()

    def _on_abort(self, payload: FinishAbortPayload) -> None:
        if self._echo:
            click.echo(click.style(f"\nAborted: {payload.reason}", fg="red"), err=True)
        self.exit_code = EXIT_FAILURE
        self.stop()
