"""Command envelopes -- one edit operation requested by the model.

The provider sends the tool input as loosely-typed JSON.  Envelopes keep
whatever arrived: a field of the wrong JSON type is dropped to ``None`` rather
than rejected, so a malformed command surfaces as an ``ErrorRaised`` domain
event instead of breaking the stream.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from cedit.models.enums import CommandKind


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class CommandEnvelope(BaseModel):
    """A single text-editor command, pre-execution."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str
    kind: str | None = None
    path: str | None = None
    line_from: int | None = None
    line_to: int | None = None
    after: int | None = None
    content: str | None = None

    @field_validator("kind", "path", "content", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str | None:
        return _str_or_none(value)

    @field_validator("line_from", "line_to", "after", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return _int_or_none(value)

    @classmethod
    def from_tool_input(cls, block_id: str, tool_input: Any) -> CommandEnvelope:
        """Build an envelope from a tool-use block's ``id`` and ``input``."""
        fields = dict(tool_input) if isinstance(tool_input, dict) else {}
        fields.pop("id", None)
        return cls.model_validate({**fields, "id": block_id})

    @property
    def command_kind(self) -> CommandKind | None:
        """The kind as a known ``CommandKind``, or ``None`` if unrecognised."""
        if self.kind is None:
            return None
        try:
            return CommandKind(self.kind)
        except ValueError:
            return None

    def missing_base_fields(self) -> list[str]:
        """Names of the fields every command needs but this one lacks."""
        missing = []
        if not self.kind:
            missing.append("kind")
        if not self.path:
            missing.append("path")
        return missing
