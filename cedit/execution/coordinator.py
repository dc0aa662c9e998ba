"""Pipeline coordinator: spec -> prompt -> command stream -> domain events.

One run goes through these states::

    idle -> spec_loaded -> interpolated -> streaming
         -> (dispatched -> event_collected)*  -> aggregated -> summarized

Any unhandled failure from loading, interpolation, the provider stream or the
executor jumps to ``aborted`` and publishes ``finish:abort``.  Once streaming
has started the failure is also described by an ``ErrorRaised`` event on
``domain:error``, published just before the abort; a run that fails earlier
(unreadable spec, over budget) publishes no domain events at all.
``finish:summary`` is never published for an aborted run.

Envelopes are handled strictly one at a time, in the order the stream yields
them, and domain events are published in that same order.  A malformed
envelope (no kind or no path) never reaches the executor; it becomes an
``ErrorRaised`` event and the run continues.
"""

from __future__ import annotations

import logging
import time
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from cedit.bus.emitters import emit_domain_event, emit_finish_abort, emit_finish_summary, emit_init_config
from cedit.errors import CommandValidationFailure, ExecutorFault
from cedit.execution.interpolate import build_prompt
from cedit.execution.loader import load_attachments, load_spec
from cedit.llm.client import create_completion_client
from cedit.models.enums import RunState, RunStatus
from cedit.models.events import BackupCreated, EditStats, ErrorRaised, FileCreated, FileEdited
from cedit.models.payloads import SummaryStats

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from cedit.bus.hub import EventHub
    from cedit.editor.base import CommandExecutor
    from cedit.llm.client import CompletionClient
    from cedit.models.commands import CommandEnvelope
    from cedit.models.events import DomainEvent
    from cedit.settings import CeditSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class RunSummary(BaseModel):
    """Aggregated outcome of the domain events of one run."""

    stats: SummaryStats = Field(default_factory=SummaryStats)
    commands_processed: int = 0
    errors: list[ErrorRaised] = Field(default_factory=list)


@dataclass
class RunResult:
    """What ``run_pipeline`` hands back to its host."""

    status: RunStatus
    state: RunState
    events: list[DomainEvent] = field(default_factory=list)
    summary: RunSummary | None = None
    reason: str | None = None
    duration_ms: int = 0


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate(events: Iterable[DomainEvent], *, count_errors_as_processed: bool = True) -> RunSummary:
    """Fold domain events into run statistics.

    Only ``FileEdited`` stats contribute to ``total_edits``.  A backup counts
    once per ``BackupCreated`` event and once per ``FileEdited`` event that
    carries a ``backup_path``.
    """
    files_edited = files_created = backups = processed = 0
    total = EditStats()
    errors: list[ErrorRaised] = []

    for event in events:
        if isinstance(event, ErrorRaised):
            errors.append(event)
            if count_errors_as_processed:
                processed += 1
            continue
        processed += 1
        if isinstance(event, FileEdited):
            files_edited += 1
            if event.stats is not None:
                total = total + event.stats
            if event.backup_path:
                backups += 1
        elif isinstance(event, FileCreated):
            files_created += 1
        elif isinstance(event, BackupCreated):
            backups += 1

    return RunSummary(
        stats=SummaryStats(
            files_edited=files_edited,
            files_created=files_created,
            backups_created=backups,
            total_edits=total,
        ),
        commands_processed=processed,
        errors=errors,
    )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


async def dispatch_envelope(
    envelope: CommandEnvelope,
    executor: CommandExecutor,
    settings: CeditSettings,
) -> DomainEvent:
    """Turn one envelope into one domain event.

    Malformed envelopes short-circuit to ``ErrorRaised``.  Anything the
    executor raises is wrapped in ``ExecutorFault``.
    """
    missing = envelope.missing_base_fields()
    if missing:
        failure = CommandValidationFailure(envelope.id, missing)
        logger.error("%s", failure)
        return ErrorRaised(message=str(failure), code="invalid_command", command_id=envelope.id)

    try:
        event = await executor.execute(envelope, settings)
    except Exception as exc:
        raise ExecutorFault(envelope.id, exc) from exc

    if event.command_id != envelope.id:
        event = event.model_copy(update={"command_id": envelope.id})
    return event


# ---------------------------------------------------------------------------
# Run state
# ---------------------------------------------------------------------------


_PRE_STREAM_STATES = frozenset({RunState.IDLE, RunState.SPEC_LOADED, RunState.INTERPOLATED})


class _RunTracker:
    def __init__(self) -> None:
        self.state = RunState.IDLE

    def advance(self, state: RunState) -> None:
        logger.debug("Run state: %s -> %s", self.state, state)
        self.state = state

    @property
    def streaming_started(self) -> bool:
        return self.state not in _PRE_STREAM_STATES


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _abort(hub: EventHub, exc: Exception, tracker: _RunTracker, events: list[DomainEvent], start: float) -> RunResult:
    reason = str(exc) or type(exc).__name__
    code = type(exc).__name__
    streaming_started = tracker.streaming_started
    tracker.advance(RunState.ABORTED)

    # Publishing here must not raise out of the pipeline.
    if streaming_started:
        error = ErrorRaised(message=reason, code=code)
        events.append(error)
        try:
            emit_domain_event(hub, error)
        except Exception:
            logger.exception("Failed to publish error event for aborted run")
    try:
        emit_finish_abort(hub, reason, code)
    except Exception:
        logger.exception("Failed to publish abort event")

    return RunResult(
        status=RunStatus.ABORTED,
        state=tracker.state,
        events=events,
        reason=reason,
        duration_ms=_elapsed_ms(start),
    )


# ---------------------------------------------------------------------------
# Main execution
# ---------------------------------------------------------------------------


async def run_pipeline(
    spec_path: str | Path,
    settings: CeditSettings,
    *,
    hub: EventHub,
    executor: CommandExecutor,
    client: CompletionClient | None = None,
    publish_config: bool = True,
) -> RunResult:
    """Execute one prompt spec to completion.

    Never raises for run failures: they are published as ``finish:abort``
    and reported in the returned ``RunResult``.

    Parameters
    ----------
    spec_path:
        YAML prompt spec to load.
    settings:
        Run configuration.
    hub:
        Where domain and terminal events are published.
    executor:
        Applies each well-formed command envelope.
    client:
        Completion client.  When omitted, an Anthropic-backed client is
        built from *settings* (missing credentials abort the run).
    publish_config:
        Publish ``init:config`` first.  Hosts that already announced the
        configuration (before asking for confirmation) pass ``False``.

    Returns
    -------
    RunResult
        Final status, the published domain events and the summary.
    """
    start = time.monotonic()
    tracker = _RunTracker()
    events: list[DomainEvent] = []

    try:
        if publish_config:
            emit_init_config(hub, settings)

        # -- Load and interpolate ----------------------------------------------
        spec = await load_spec(spec_path)
        tracker.advance(RunState.SPEC_LOADED)
        attachments = await load_attachments(spec.attachments)
        prompt = build_prompt(spec, settings.vars_override, attachments)
        tracker.advance(RunState.INTERPOLATED)

        # -- Stream and dispatch -----------------------------------------------
        if client is None:
            client = create_completion_client(settings)
        async with aclosing(client.send_prompt(prompt)) as envelopes:
            tracker.advance(RunState.STREAMING)
            async for envelope in envelopes:
                event = await dispatch_envelope(envelope, executor, settings)
                tracker.advance(RunState.DISPATCHED)
                emit_domain_event(hub, event)
                events.append(event)
                tracker.advance(RunState.EVENT_COLLECTED)
    except Exception as exc:
        logger.exception("Run aborted in state %s", tracker.state)
        return _abort(hub, exc, tracker, events, start)

    # -- Summarize -------------------------------------------------------------
    summary = aggregate(events, count_errors_as_processed=settings.count_errors_as_processed)
    tracker.advance(RunState.AGGREGATED)
    duration_ms = _elapsed_ms(start)
    try:
        emit_finish_summary(hub, summary.stats, duration_ms)
    except Exception:
        logger.exception("Failed to publish run summary")
    tracker.advance(RunState.SUMMARIZED)

    logger.info(
        "Run completed: %d commands, %d errors, duration=%dms",
        summary.commands_processed,
        len(summary.errors),
        duration_ms,
    )
    return RunResult(
        status=RunStatus.COMPLETED,
        state=tracker.state,
        events=events,
        summary=summary,
        duration_ms=duration_ms,
    )
