"""Typed publish/subscribe hub and its payload contract validator."""

from cedit.bus.emitters import (
    emit_domain_event,
    emit_finish_abort,
    emit_finish_summary,
    emit_init_complete,
    emit_init_config,
    kind_for_event,
)
from cedit.bus.hub import ANY, EventHub, namespace_key, redact_payload
from cedit.bus.validator import validate_payload

__all__ = [
    "ANY",
    "EventHub",
    "emit_domain_event",
    "emit_finish_abort",
    "emit_finish_summary",
    "emit_init_complete",
    "emit_init_config",
    "kind_for_event",
    "namespace_key",
    "redact_payload",
    "validate_payload",
]
