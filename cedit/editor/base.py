"""Command executor interface.

The pipeline hands every well-formed command envelope to an executor and
publishes whatever domain event comes back.  Expected failures (missing
file, bad line range, path outside the workspace) are returned as
``ErrorRaised`` events; an executor only raises for faults it cannot
describe, and the pipeline treats those as fatal to the run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cedit.models.commands import CommandEnvelope
    from cedit.models.events import DomainEvent
    from cedit.settings import CeditSettings


@runtime_checkable
class CommandExecutor(Protocol):
    async def execute(self, envelope: CommandEnvelope, settings: CeditSettings) -> DomainEvent:
        """Apply *envelope* and describe the outcome as one domain event."""
        ...
