"""Payload contract validator.

A pure function checking that a payload carries the fields its event kind
requires.  It has no side effects and does not depend on the hub, so it can be
exercised on its own.

Payloads may be hub payload models or plain mappings; unknown namespaces are
accepted as-is so that new kinds can be introduced without touching this
module.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from cedit.errors import ContractViolation
from cedit.models.enums import NAMESPACE_SEPARATOR, EventKind, EventNamespace
from cedit.models.payloads import payload_type_for


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _namespace_of(kind: str) -> str:
    return str(kind).split(NAMESPACE_SEPARATOR, 1)[0]


def _check_model_type(kind: str, payload: Any) -> None:
    if not isinstance(payload, BaseModel):
        return
    try:
        expected = payload_type_for(EventKind(kind))
    except ValueError:
        return
    if not isinstance(payload, expected):
        raise ContractViolation(kind, f"expected {expected.__name__}, got {type(payload).__name__}")


def _validate_init(kind: str, payload: Any) -> None:
    if kind == EventKind.INIT_CONFIG and _field(payload, "config") is None:
        raise ContractViolation(kind, "config is required")
    # init:complete has no required fields beyond the timestamp.


def _validate_domain(kind: str, payload: Any) -> None:
    event = _field(payload, "event")
    if event is None or not _field(event, "type"):
        raise ContractViolation(kind, "event with type is required")


def _validate_finish(kind: str, payload: Any) -> None:
    if kind == EventKind.SUMMARY:
        if _field(payload, "stats") is None:
            raise ContractViolation(kind, "stats is required")
    elif kind == EventKind.ABORT:
        reason = _field(payload, "reason")
        if not isinstance(reason, str) or not reason:
            raise ContractViolation(kind, "reason is required")


def validate_payload(kind: EventKind | str, payload: Any) -> None:
    """Raise ``ContractViolation`` if *payload* does not satisfy *kind*'s contract."""
    kind = str(kind)
    if payload is None:
        raise ContractViolation(kind, "payload is required")

    _check_model_type(kind, payload)

    match _namespace_of(kind):
        case EventNamespace.INIT:
            _validate_init(kind, payload)
        case EventNamespace.DOMAIN:
            _validate_domain(kind, payload)
        case EventNamespace.FINISH:
            _validate_finish(kind, payload)
        case _:
            # infra and future namespaces pass through.
            pass
