"""Data models for the command pipeline."""

from cedit.models.commands import CommandEnvelope
from cedit.models.enums import (
    CommandKind,
    DomainEventType,
    EventKind,
    EventNamespace,
    RunState,
    RunStatus,
)
from cedit.models.events import (
    BackupCreated,
    DomainEvent,
    EditStats,
    ErrorRaised,
    FileCreated,
    FileEdited,
    FileViewed,
)
from cedit.models.payloads import (
    AnyPayload,
    BusPayload,
    DomainEventPayload,
    FinishAbortPayload,
    FinishSummaryPayload,
    InitCompletePayload,
    InitConfigPayload,
    SummaryStats,
    payload_type_for,
)
from cedit.models.prompt import Prompt, PromptSpec

__all__ = [
    "AnyPayload",
    # Domain events
    "BackupCreated",
    # Payloads
    "BusPayload",
    # Commands
    "CommandEnvelope",
    # Enums
    "CommandKind",
    "DomainEvent",
    "DomainEventPayload",
    "DomainEventType",
    "EditStats",
    "ErrorRaised",
    "EventKind",
    "EventNamespace",
    "FileCreated",
    "FileEdited",
    "FileViewed",
    "FinishAbortPayload",
    "FinishSummaryPayload",
    "InitCompletePayload",
    "InitConfigPayload",
    # Prompt
    "Prompt",
    "PromptSpec",
    "RunState",
    "RunStatus",
    "SummaryStats",
    "payload_type_for",
]
