"""Tests for the click command line (provider and logging patched out)."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cedit.bus.hub import EventHub
from cedit.cli import main
from cedit.llm.client import CompletionClient

SPEC = """\
system: You edit files.
user: Create {{var.NAME}}
variables:
  NAME: a.txt
"""


@pytest.fixture(autouse=True)
def _no_logging_setup() -> Any:
    with patch("cedit.log.setup_logging"):
        yield


@pytest.fixture
def spec_file(workspace: Path) -> Path:
    path = workspace / "spec.yml"
    path.write_text(SPEC, encoding="utf-8")
    return path


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> CliRunner:
    monkeypatch.setenv("CEDIT_BACKUP_DIR", str(tmp_path / "backups"))
    return CliRunner()


def _client_factory(fake_provider, chunks: list[Any]):
    def _create(settings, **kwargs):
        return CompletionClient(settings, fake_provider(chunks), **kwargs)

    return _create


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


def test_run_applies_edits(
    runner: CliRunner,
    spec_file: Path,
    workspace: Path,
    fake_provider,
    tool_use_chunks,
) -> None:
    chunks = tool_use_chunks("t1", {"kind": "create", "path": "a.txt", "content": "hello"})
    with patch("cedit.execution.coordinator.create_completion_client", _client_factory(fake_provider, chunks)):
        result = runner.invoke(main, ["run", str(spec_file), "--yes"])

    assert result.exit_code == 0, result.output
    assert "Processing spec:" in result.output
    assert "1 created" in result.output
    assert (workspace / "a.txt").read_text(encoding="utf-8") == "hello"


def test_run_dry_run_and_var_override(
    runner: CliRunner,
    spec_file: Path,
    workspace: Path,
    fake_provider,
    tool_use_chunks,
) -> None:
    seen: list[Any] = []

    def _create(settings, **kwargs):
        seen.append(settings)
        chunks = tool_use_chunks("t1", {"kind": "create", "path": "b.txt", "content": "x"})
        return CompletionClient(settings, fake_provider(chunks), **kwargs)

    with patch("cedit.execution.coordinator.create_completion_client", _create):
        result = runner.invoke(main, ["run", str(spec_file), "--yes", "--dry-run", "--var", "NAME=b.txt"])

    assert result.exit_code == 0, result.output
    assert seen[0].dry_run is True
    assert seen[0].vars_override == {"NAME": "b.txt"}
    assert not (workspace / "b.txt").exists()
    assert (workspace / "b.updated.txt").exists()


def test_run_abort_exits_1(runner: CliRunner, workspace: Path) -> None:
    result = runner.invoke(main, ["run", str(workspace / "missing.yml"), "--yes"])
    assert result.exit_code == 1
    assert "Aborted:" in result.output


def test_run_without_yes_in_non_interactive_terminal(runner: CliRunner, spec_file: Path) -> None:
    result = runner.invoke(main, ["run", str(spec_file)])
    assert result.exit_code == 1
    assert "confirmation required" in result.output


def test_run_rejects_malformed_var(runner: CliRunner, spec_file: Path) -> None:
    result = runner.invoke(main, ["run", str(spec_file), "--yes", "--var", "NOEQUALS"])
    assert result.exit_code == 2
    assert "KEY=VALUE" in result.output


@pytest.fixture
def published_kinds(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Kinds published on any hub the CLI builds, in order."""
    kinds: list[str] = []
    publish = EventHub.publish

    def _recording(self: EventHub, kind: Any, payload: Any) -> bool:
        kinds.append(str(kind))
        return publish(self, kind, payload)

    monkeypatch.setattr(EventHub, "publish", _recording)
    return kinds


def test_run_announces_config_before_confirmation(
    runner: CliRunner,
    spec_file: Path,
    published_kinds: list[str],
    fake_provider,
    tool_use_chunks,
) -> None:
    chunks = tool_use_chunks("t1", {"kind": "create", "path": "a.txt", "content": "hello"})
    with patch("cedit.execution.coordinator.create_completion_client", _client_factory(fake_provider, chunks)):
        result = runner.invoke(main, ["run", str(spec_file), "--yes"])

    assert result.exit_code == 0, result.output
    assert published_kinds[:2] == ["init:config", "init:complete"]
    assert published_kinds.count("init:config") == 1
    assert published_kinds[-1] == "finish:summary"


def test_run_abort_keeps_lifecycle_order(runner: CliRunner, workspace: Path, published_kinds: list[str]) -> None:
    result = runner.invoke(main, ["run", str(workspace / "missing.yml"), "--yes"])
    assert result.exit_code == 1
    assert published_kinds == ["init:config", "init:complete", "finish:abort"]


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


def test_check_reports_estimate(runner: CliRunner, spec_file: Path) -> None:
    result = runner.invoke(main, ["check", str(spec_file)])
    assert result.exit_code == 0, result.output
    assert "Estimated tokens:" in result.output
    assert "OK" in result.output


def test_check_over_budget(runner: CliRunner, spec_file: Path) -> None:
    result = runner.invoke(main, ["check", str(spec_file), "--max-tokens", "10"])
    assert result.exit_code == 1
    assert "Input too large" in result.output


def test_check_missing_spec(runner: CliRunner, workspace: Path) -> None:
    result = runner.invoke(main, ["check", str(workspace / "nope.yml")])
    assert result.exit_code == 1
    assert "Invalid spec file" in result.output


def test_check_undecodable_spec(runner: CliRunner, workspace: Path) -> None:
    path = workspace / "binary.yml"
    path.write_bytes(b"system: \xff\xfe\nuser: u\nvariables: {}\n")
    result = runner.invoke(main, ["check", str(path)])
    assert result.exit_code == 1
    assert "Invalid spec file" in result.output
    assert not isinstance(result.exception, UnicodeDecodeError)
