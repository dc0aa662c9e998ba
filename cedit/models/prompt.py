"""Prompt specification models.

``PromptSpec`` is what the YAML spec file declares; ``Prompt`` is the
interpolated text actually sent to the provider.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PromptSpec(BaseModel):
    """A loaded spec file."""

    model_config = ConfigDict(frozen=True)

    system: str
    user: str
    variables: dict[str, str] = Field(default_factory=dict)
    attachments: list[str] = Field(default_factory=list, description="Relative paths appended to the user prompt")


class Prompt(BaseModel):
    """Interpolated system + user text for one completion request."""

    model_config = ConfigDict(frozen=True)

    system: str
    user: str
