from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import FakeProjectStore, FakeTaskStore, ScriptedGenerator
from typer.testing import CliRunner

from taskwright import cli
from taskwright.automation import CancelToken, CommandPipeline

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda: None)


@pytest.fixture
def stores(monkeypatch: pytest.MonkeyPatch) -> tuple[FakeProjectStore, FakeTaskStore]:
    projects, tasks = FakeProjectStore(), FakeTaskStore()
    generator = ScriptedGenerator("ACTION: Create Project\nTITLE: Blog\nDESCRIPTION: A blog")
    monkeypatch.setattr(
        cli, "build_pipeline", lambda: CommandPipeline(generator, projects, tasks)
    )
    return projects, tasks


def test_intent() -> None:
    result = runner.invoke(cli.app, ["intent", "Delete the website project"])
    assert result.exit_code == 0
    assert "delete_project" in result.output


def test_prompt_for_unknown_text_fails() -> None:
    result = runner.invoke(cli.app, ["prompt", "hello there"])
    assert result.exit_code == 1


def test_prompt_prints_template() -> None:
    result = runner.invoke(cli.app, ["prompt", "Remove the Blog project"])
    assert result.exit_code == 0
    assert "ACTION: Delete Project" in result.output


def test_run_executes(stores: tuple[FakeProjectStore, FakeTaskStore]) -> None:
    result = runner.invoke(cli.app, ["run", "Create a project called Blog"])
    assert result.exit_code == 0
    assert "created successfully" in result.output
    assert stores[0].call_names() == ["create"]


def test_run_preview_json(stores: tuple[FakeProjectStore, FakeTaskStore]) -> None:
    result = runner.invoke(cli.app, ["run", "Create a project called Blog", "--preview", "--json"])
    assert result.exit_code == 0
    body = json.loads(result.output)
    assert body["preview"] is True
    assert stores[0].calls == []


def test_run_failure_exit_code(stores: tuple[FakeProjectStore, FakeTaskStore]) -> None:
    result = runner.invoke(cli.app, ["run", "hello there"])
    assert result.exit_code == 1


def test_parse_file(tmp_path: Path) -> None:
    reply = tmp_path / "reply.txt"
    reply.write_text("ACTION: Delete Task\nSEARCH: login\n", encoding="utf-8")
    result = runner.invoke(cli.app, ["parse", str(reply)])
    assert result.exit_code == 0
    assert "delete task" in result.output
    assert "valid" in result.output


def test_parse_stdin_validation_failure() -> None:
    result = runner.invoke(cli.app, ["parse"], input="ACTION: Delete Task\n")
    assert result.exit_code == 1
    assert "requires a task identifier" in result.output


def test_parse_flags_contradiction() -> None:
    result = runner.invoke(
        cli.app,
        ["parse", "--text", "Delete the blog project"],
        input="ACTION: Create Project\nTITLE: Blog\n",
    )
    assert result.exit_code == 1
    assert "requested to DELETE" in result.output


def test_parse_garbage() -> None:
    result = runner.invoke(cli.app, ["parse"], input="nothing useful")
    assert result.exit_code == 1
    assert "Failed to understand AI response" in result.output


class _InterruptedWorker:
    """Stands in for the worker thread while Ctrl+C is pressed repeatedly."""

    def __init__(self, interrupts: int) -> None:
        self.interrupts = interrupts
        self.joins = 0

    def is_alive(self) -> bool:
        return self.joins <= self.interrupts

    def join(self, timeout: float | None = None) -> None:
        self.joins += 1
        if self.joins <= self.interrupts:
            raise KeyboardInterrupt


def test_repeated_ctrl_c_cancels_once_and_keeps_waiting() -> None:
    cancel = CancelToken()
    worker = _InterruptedWorker(interrupts=2)

    cli._wait_for(worker, cancel)  # type: ignore[arg-type]

    assert cancel.cancelled
    assert worker.joins == 3
    assert not worker.is_alive()
