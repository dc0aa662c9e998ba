"""Shared enumerations used across the pipeline."""

from __future__ import annotations

from enum import StrEnum

NAMESPACE_SEPARATOR = ":"

# -- Hub ---------------------------------------------------------------------


class EventNamespace(StrEnum):
    """Grouping prefix of an event kind."""

    INIT = "init"
    DOMAIN = "domain"
    FINISH = "finish"
    INFRA = "infra"


class EventKind(StrEnum):
    """Closed set of publishable event kinds (``namespace:name``)."""

    # Init
    INIT_CONFIG = "init:config"
    INIT_COMPLETE = "init:complete"

    # Domain
    FILE_VIEWED = "domain:file-viewed"
    FILE_EDITED = "domain:file-edited"
    FILE_CREATED = "domain:file-created"
    BACKUP_CREATED = "domain:backup-created"
    ERROR = "domain:error"

    # Finish
    SUMMARY = "finish:summary"
    ABORT = "finish:abort"

    @property
    def namespace(self) -> EventNamespace:
        return EventNamespace(self.value.split(NAMESPACE_SEPARATOR, 1)[0])

    @property
    def event_name(self) -> str:
        return self.value.split(NAMESPACE_SEPARATOR, 1)[1]


# -- Commands ----------------------------------------------------------------


class CommandKind(StrEnum):
    """Edit operations the text-editor tool can request."""

    VIEW = "view"
    INSERT = "insert"
    STR_REPLACE = "str_replace"
    CREATE = "create"
    UNDO_EDIT = "undo_edit"


# -- Domain events -----------------------------------------------------------


class DomainEventType(StrEnum):
    FILE_VIEWED = "FileViewed"
    FILE_EDITED = "FileEdited"
    FILE_CREATED = "FileCreated"
    BACKUP_CREATED = "BackupCreated"
    ERROR_RAISED = "ErrorRaised"


# -- Run ---------------------------------------------------------------------


class RunState(StrEnum):
    """Linear lifecycle of one pipeline run."""

    IDLE = "idle"
    SPEC_LOADED = "spec_loaded"
    INTERPOLATED = "interpolated"
    STREAMING = "streaming"
    DISPATCHED = "dispatched"
    EVENT_COLLECTED = "event_collected"
    AGGREGATED = "aggregated"
    SUMMARIZED = "summarized"
    ABORTED = "aborted"


class RunStatus(StrEnum):
    COMPLETED = "completed"
    ABORTED = "aborted"
