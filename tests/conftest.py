"""Shared test fixtures: settings, hubs, a scripted provider and log capture.

Nothing here touches the network.  ``FakeProvider`` stands in for the
Anthropic adapter: each call to ``open_stream`` consumes the next scripted
attempt, which is either an exception to raise or a list of chunks to stream.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterator, Mapping
from pathlib import Path
from typing import Any

import pytest
from loguru import logger

from cedit.bus.hub import EventHub
from cedit.settings import CeditSettings, get_settings

_ENV_KEYS = (
    "ANTHROPIC_API_KEY",
    "CEDIT_ANTHROPIC_API_KEY",
    "CEDIT_MODEL",
    "CEDIT_RETRIES",
    "CEDIT_RETRY_DELAY_MS",
    "CEDIT_MAX_TOKENS",
    "CEDIT_DRY_RUN",
    "CEDIT_BACKUP_DIR",
    "CEDIT_LOG_DIR",
    "CEDIT_LOG_LEVEL",
)


# ---------------------------------------------------------------------------
# Scripted provider
# ---------------------------------------------------------------------------


async def _stream(chunks: list[Any]) -> AsyncIterator[Mapping[str, Any]]:
    for chunk in chunks:
        if isinstance(chunk, BaseException):
            raise chunk
        yield chunk


class FakeProvider:
    """``StreamProvider`` that replays scripted attempts."""

    def __init__(self, *attempts: BaseException | list[Any]) -> None:
        self.attempts = list(attempts)
        self.requests: list[Any] = []

    async def open_stream(self, request: Any) -> AsyncIterator[Mapping[str, Any]]:
        self.requests.append(request)
        outcome = self.attempts.pop(0) if self.attempts else []
        if isinstance(outcome, BaseException):
            raise outcome
        return _stream(outcome)


def _tool_use_chunks(block_id: str, tool_input: dict[str, Any], *, index: int = 0) -> list[dict[str, Any]]:
    """Incremental tool-use block: start, two JSON fragments, stop."""
    raw = json.dumps(tool_input)
    middle = len(raw) // 2
    return [
        {
            "type": "content_block_start",
            "index": index,
            "content_block": {"type": "tool_use", "id": block_id, "name": "text_editor", "input": {}},
        },
        {"type": "content_block_delta", "index": index, "delta": {"type": "input_json_delta", "partial_json": raw[:middle]}},
        {"type": "content_block_delta", "index": index, "delta": {"type": "input_json_delta", "partial_json": raw[middle:]}},
        {"type": "content_block_stop", "index": index},
    ]


@pytest.fixture
def fake_provider() -> type[FakeProvider]:
    return FakeProvider


@pytest.fixture
def tool_use_chunks():
    return _tool_use_chunks


# ---------------------------------------------------------------------------
# Environment and settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep the developer's CEDIT_* / ANTHROPIC_* variables out of tests."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> CeditSettings:
    return CeditSettings(
        _env_file=None,
        anthropic_api_key="sk-test",
        backup_dir=str(tmp_path / "backups"),
    )


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An empty working directory the test runs in."""
    root = tmp_path / "workspace"
    root.mkdir()
    monkeypatch.chdir(root)
    return root


# ---------------------------------------------------------------------------
# Hub and log capture
# ---------------------------------------------------------------------------


@pytest.fixture
def hub() -> EventHub:
    return EventHub()


@pytest.fixture
def published(hub: EventHub) -> list[tuple[str, Any]]:
    """Every (kind, payload) published on ``hub``, in order."""
    seen: list[tuple[str, Any]] = []
    hub.subscribe_any(lambda kind, payload: seen.append((kind, payload)))
    return seen


@pytest.fixture
def log_records() -> Iterator[list[dict[str, Any]]]:
    """loguru records emitted during the test."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
