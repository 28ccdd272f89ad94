from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from taskwright.models import Project, Task
from taskwright.repositories.base import RepoResult


@pytest.fixture(autouse=True)
def isolated_errors_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Ensure tests do not write to `.taskwright-data/errors.jsonl`."""

    import taskwright.errors as errors_mod

    path = tmp_path / "errors.jsonl"
    monkeypatch.setattr(errors_mod, "_default_errors_path", lambda: path)
    monkeypatch.setattr(errors_mod, "_RECENT_SIGNATURES", {})
    return path


@dataclass
class FakeProjectStore:
    """In-memory ProjectStore that records every call."""

    projects: list[Project] = field(default_factory=list)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    fail_create: str | None = None
    fail_update: str | None = None
    fail_delete: str | None = None

    def create(self, name: str, description: str) -> RepoResult[Project]:
        self.calls.append(("create", (name, description)))
        if self.fail_create:
            return RepoResult.failure(self.fail_create)
        project = Project(id=f"p{len(self.projects) + 1}", name=name, description=description)
        self.projects.append(project)
        return RepoResult.success(project)

    def search(self, text: str) -> RepoResult[Project]:
        self.calls.append(("search", (text,)))
        needle = text.lower()
        for project in self.projects:
            if needle in project.name.lower() or project.name.lower() in needle:
                return RepoResult.success(project)
        return RepoResult.failure("No matching project found")

    def update(
        self,
        project_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> RepoResult[Project]:
        self.calls.append(("update", (project_id, name, description)))
        if self.fail_update:
            return RepoResult.failure(self.fail_update)
        for i, project in enumerate(self.projects):
            if project.id == project_id:
                changes = {k: v for k, v in {"name": name, "description": description}.items() if v}
                self.projects[i] = project.model_copy(update=changes)
                return RepoResult.success(self.projects[i])
        return RepoResult.failure("Project not found")

    def delete(self, project_id: str) -> RepoResult[None]:
        self.calls.append(("delete", (project_id,)))
        if self.fail_delete:
            return RepoResult.failure(self.fail_delete)
        self.projects = [p for p in self.projects if p.id != project_id]
        return RepoResult.success(None)

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@dataclass
class FakeTaskStore:
    """In-memory TaskStore that records every call."""

    tasks: list[Task] = field(default_factory=list)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    # Titles whose creation should fail.
    fail_titles: set[str] = field(default_factory=set)

    def create(
        self,
        title: str,
        description: str,
        project_id: str,
        status: str = "to-do",
        assigned_to: str | None = None,
    ) -> RepoResult[Task]:
        self.calls.append(("create", (title, description, project_id, status, assigned_to)))
        if title in self.fail_titles:
            return RepoResult.failure(f"Failed to create task {title}")
        task = Task(
            id=f"t{len(self.tasks) + 1}",
            title=title,
            description=description,
            status=status,
            project_id=project_id,
            assigned_to=assigned_to,
        )
        self.tasks.append(task)
        return RepoResult.success(task)

    def search(self, text: str) -> RepoResult[Task]:
        self.calls.append(("search", (text,)))
        needle = text.lower()
        for task in self.tasks:
            if needle in task.title.lower():
                return RepoResult.success(task)
        return RepoResult.failure("No matching task found")

    def update(
        self,
        task_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        status: str | None = None,
        assigned_to: str | None = None,
    ) -> RepoResult[Task]:
        self.calls.append(("update", (task_id, title, description, status, assigned_to)))
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                changes = {
                    k: v
                    for k, v in {
                        "title": title,
                        "description": description,
                        "status": status,
                        "assigned_to": assigned_to,
                    }.items()
                    if v is not None
                }
                self.tasks[i] = task.model_copy(update=changes)
                return RepoResult.success(self.tasks[i])
        return RepoResult.failure("Task not found")

    def delete(self, task_id: str) -> RepoResult[None]:
        self.calls.append(("delete", (task_id,)))
        self.tasks = [t for t in self.tasks if t.id != task_id]
        return RepoResult.success(None)

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class ScriptedGenerator:
    """TextGenerationService that replays a canned reply in small fragments."""

    def __init__(
        self,
        reply: str = "",
        *,
        ready: bool = True,
        error: Exception | None = None,
        chunk_size: int = 7,
        on_fragment: Callable[[int], None] | None = None,
    ) -> None:
        self.reply = reply
        self.ready = ready
        self.error = error
        self.chunk_size = chunk_size
        self.on_fragment = on_fragment
        self.prompts: list[str] = []

    def is_ready(self) -> bool:
        return self.ready

    def generate(self, prompt: str) -> Iterator[str]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        for index, start in enumerate(range(0, len(self.reply), self.chunk_size)):
            if self.on_fragment is not None:
                self.on_fragment(index)
            yield self.reply[start:start + self.chunk_size]


@pytest.fixture
def project_store() -> FakeProjectStore:
    return FakeProjectStore()


@pytest.fixture
def task_store() -> FakeTaskStore:
    return FakeTaskStore()
