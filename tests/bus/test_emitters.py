"""Unit tests for the publishing helpers."""

from __future__ import annotations

from typing import Any

import pytest

from cedit.bus.emitters import (
    emit_domain_event,
    emit_finish_abort,
    emit_finish_summary,
    emit_init_complete,
    emit_init_config,
    kind_for_event,
)
from cedit.bus.hub import EventHub
from cedit.errors import ContractViolation
from cedit.models.enums import EventKind
from cedit.models.events import BackupCreated, ErrorRaised, FileCreated, FileEdited, FileViewed
from cedit.models.payloads import SummaryStats
from cedit.settings import CeditSettings


@pytest.mark.parametrize(
    ("event", "kind"),
    [
        (FileViewed(path="a", lines=1), EventKind.FILE_VIEWED),
        (FileEdited(path="a", lines=1), EventKind.FILE_EDITED),
        (FileCreated(path="a", lines=1), EventKind.FILE_CREATED),
        (BackupCreated(original_path="a", backup_path="b"), EventKind.BACKUP_CREATED),
        (ErrorRaised(message="x"), EventKind.ERROR),
    ],
)
def test_kind_for_event(event: Any, kind: EventKind) -> None:
    assert kind_for_event(event) is kind


def test_emitters_publish_expected_kinds(
    hub: EventHub,
    published: list[tuple[str, Any]],
    settings: CeditSettings,
) -> None:
    emit_init_config(hub, settings)
    emit_init_complete(hub, success=False, message="cancelled")
    emit_domain_event(hub, FileCreated(path="a.txt", lines=2, command_id="t1"))
    emit_finish_summary(hub, SummaryStats(files_created=1), 12)
    emit_finish_abort(hub, "stream failed", "ProviderRequestFailure")

    assert [kind for kind, _ in published] == [
        "init:config",
        "init:complete",
        "domain:file-created",
        "finish:summary",
        "finish:abort",
    ]
    _, complete = published[1]
    assert complete.success is False
    _, domain = published[2]
    assert domain.event.command_id == "t1"
    _, summary = published[3]
    assert summary.duration == 12
    _, abort = published[4]
    assert abort.code == "ProviderRequestFailure"


def test_emit_finish_abort_rejects_empty_reason(hub: EventHub) -> None:
    with pytest.raises(ContractViolation):
        emit_finish_abort(hub, "")
