"""Unit tests for the payload contract validator."""

from __future__ import annotations

import pytest

from cedit.bus.validator import validate_payload
from cedit.errors import ContractViolation
from cedit.models.enums import EventKind
from cedit.models.events import FileViewed
from cedit.models.payloads import (
    DomainEventPayload,
    FinishAbortPayload,
    FinishSummaryPayload,
    InitCompletePayload,
    InitConfigPayload,
    SummaryStats,
)
from cedit.settings import CeditSettings

# ---------------------------------------------------------------------------
# Accepted payloads
# ---------------------------------------------------------------------------


def test_init_config_with_config() -> None:
    validate_payload(EventKind.INIT_CONFIG, InitConfigPayload(config=CeditSettings(_env_file=None)))


def test_init_complete_needs_nothing_else() -> None:
    validate_payload(EventKind.INIT_COMPLETE, InitCompletePayload())


def test_domain_event_with_type() -> None:
    payload = DomainEventPayload(event=FileViewed(path="a.txt", lines=3))
    validate_payload(EventKind.FILE_VIEWED, payload)


def test_summary_with_stats() -> None:
    validate_payload(EventKind.SUMMARY, FinishSummaryPayload(stats=SummaryStats(), duration=0))


def test_abort_with_reason() -> None:
    validate_payload(EventKind.ABORT, FinishAbortPayload(reason="boom"))


def test_mapping_payloads_are_accepted() -> None:
    validate_payload("domain:file-edited", {"event": {"type": "FileEdited"}})
    validate_payload("finish:abort", {"reason": "x"})


def test_unknown_namespace_passes_through() -> None:
    validate_payload("infra:heartbeat", {"anything": True})


# ---------------------------------------------------------------------------
# Violations
# ---------------------------------------------------------------------------


def test_missing_payload() -> None:
    with pytest.raises(ContractViolation, match="payload is required"):
        validate_payload(EventKind.INIT_COMPLETE, None)


def test_init_config_without_config() -> None:
    with pytest.raises(ContractViolation, match="config is required"):
        validate_payload(EventKind.INIT_CONFIG, InitConfigPayload())


def test_domain_without_event() -> None:
    with pytest.raises(ContractViolation, match="event with type is required"):
        validate_payload(EventKind.ERROR, DomainEventPayload())


def test_domain_event_without_type() -> None:
    with pytest.raises(ContractViolation, match="event with type is required"):
        validate_payload("domain:file-edited", {"event": {"path": "a.txt"}})


def test_summary_without_stats() -> None:
    with pytest.raises(ContractViolation, match="stats is required"):
        validate_payload(EventKind.SUMMARY, FinishSummaryPayload(duration=5))


@pytest.mark.parametrize("reason", [None, ""])
def test_abort_without_reason(reason: str | None) -> None:
    with pytest.raises(ContractViolation, match="reason is required"):
        validate_payload(EventKind.ABORT, FinishAbortPayload(reason=reason))


def test_wrong_payload_model_for_kind() -> None:
    with pytest.raises(ContractViolation, match="expected FinishAbortPayload"):
        validate_payload(EventKind.ABORT, FinishSummaryPayload(stats=SummaryStats()))


def test_violation_message_names_kind() -> None:
    with pytest.raises(ContractViolation) as exc_info:
        validate_payload(EventKind.SUMMARY, FinishSummaryPayload())
    assert str(exc_info.value) == "Invalid payload for finish:summary: stats is required"
    assert exc_info.value.kind == "finish:summary"
