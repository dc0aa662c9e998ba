"""Exception taxonomy for the command pipeline."""

from __future__ import annotations


class CeditError(Exception):
    """Base class for all cedit errors."""


class ContractViolation(CeditError, ValueError):
    """A hub payload is missing a field its event kind requires."""

    def __init__(self, kind: str, detail: str) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"Invalid payload for {kind}: {detail}")


class TokenBudgetExceeded(CeditError):
    """The prompt is estimated to exceed the configured token budget."""

    def __init__(self, estimated: int, limit: int) -> None:
        self.estimated = estimated
        self.limit = limit
        super().__init__(f"Input too large: estimated {estimated} tokens (limit {limit})")


class ProviderRequestFailure(CeditError):
    """The provider reported an error inside an already-open stream."""


class MissingCredentialsError(CeditError):
    def __init__(self) -> None:
        super().__init__("ANTHROPIC_API_KEY environment variable or config value not set or is empty")


class ExecutorFault(CeditError):
    """The command executor raised instead of returning an ``ErrorRaised`` event."""

    def __init__(self, command_id: str, cause: BaseException) -> None:
        self.command_id = command_id
        super().__init__(f"Executor failed on command {command_id}: {cause}")


class CommandValidationFailure(CeditError, ValueError):
    """A command envelope lacks the fields its kind needs."""

    def __init__(self, command_id: str, missing: list[str]) -> None:
        self.command_id = command_id
        self.missing = missing
        super().__init__(f"Invalid command received: missing {', '.join(missing)}. ID: {command_id}")


class SpecLoadError(CeditError):
    """The prompt spec file could not be read or is incomplete."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Invalid spec file ({path}): {detail}")


class InterpolationError(CeditError, ValueError):
    """A template variable could not be substituted."""


class WorkspacePathError(CeditError, ValueError):
    """A command path resolves outside the working directory."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path escapes workspace: {path}")
