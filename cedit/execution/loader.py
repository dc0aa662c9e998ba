"""Prompt spec loading.

A spec is a YAML document::

    system: You are a careful refactoring assistant.
    user: Rename {{var.OLD}} to {{var.NEW}} in src/app.py
    variables:
      OLD: fetch_data
      NEW: load_data
    attachments:        # optional
      - src/app.py

File reads go through ``anyio.to_thread.run_sync`` so the event loop stays
free while the disk is busy.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from anyio import to_thread
from loguru import logger
from pydantic import ValidationError

from cedit.errors import SpecLoadError
from cedit.models.prompt import PromptSpec

if TYPE_CHECKING:
    from collections.abc import Sequence

_REQUIRED_FIELDS = ("system", "user", "variables")


@dataclass(frozen=True)
class Attachment:
    path: str
    content: str


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _stringify_variables(path: str, raw: Any) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SpecLoadError(path, "variables must be a mapping")
    return {str(key): "" if value is None else str(value) for key, value in raw.items()}


async def load_spec(path: str | Path) -> PromptSpec:
    """Read and validate a spec file.

    Raises ``SpecLoadError`` when the file cannot be read or parsed, when
    ``system``, ``user`` or ``variables`` is missing, or when ``attachments``
    is not a list.  The message carries the underlying error text.
    """
    source = str(path)
    logger.info("Loading spec file {}", source)
    try:
        raw = await to_thread.run_sync(_read_text, Path(path))
    except (OSError, UnicodeDecodeError) as exc:
        raise SpecLoadError(source, str(exc)) from exc

    try:
        doc = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise SpecLoadError(source, f"not valid YAML: {exc}") from exc

    if not isinstance(doc, dict) or any(name not in doc for name in _REQUIRED_FIELDS):
        raise SpecLoadError(source, "missing required fields (system, user, variables)")

    attachments = doc.get("attachments")
    if attachments is not None and not isinstance(attachments, list):
        raise SpecLoadError(source, "attachments must be an array")

    try:
        spec = PromptSpec(
            system=doc["system"],
            user=doc["user"],
            variables=_stringify_variables(source, doc["variables"]),
            attachments=[str(item) for item in attachments or []],
        )
    except ValidationError as exc:
        raise SpecLoadError(source, str(exc)) from exc

    logger.info("Spec file {} loaded ({} variables, {} attachments)", source, len(spec.variables), len(spec.attachments))
    return spec


async def load_attachments(paths: Sequence[str], *, root: Path | None = None) -> list[Attachment]:
    """Read attachment files relative to *root* (default: the working directory).

    Attachments must stay inside *root*; absolute paths and ``..`` escapes are
    rejected with ``SpecLoadError``.
    """
    base = (root or Path.cwd()).resolve()
    attachments = []
    for rel in paths:
        target = (base / rel).resolve()
        if not target.is_relative_to(base):
            raise SpecLoadError(rel, "attachment path escapes the working directory")
        try:
            content = await to_thread.run_sync(_read_text, target)
        except (OSError, UnicodeDecodeError) as exc:
            raise SpecLoadError(rel, f"cannot read attachment: {exc}") from exc
        attachments.append(Attachment(path=rel, content=content))
    return attachments
