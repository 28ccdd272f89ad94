"""Sequential execution of a validated action batch.

Actions run strictly in order because later ones may need ids produced by
earlier ones (a new project feeds the following "create task"). Each action
adds lines to a human-readable transcript. Only two failures stop the batch:
a failed "create project", and a "create task" whose project cannot be found.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

from taskwright.errors import ExecutionCancelledError
from taskwright.models import TaskStatus
from taskwright.repositories.base import ProjectStore, TaskStore
from taskwright.repositories.users import DeveloperDirectory

from .actions import NormalizedAction, is_destructive, normalize_action
from .parser import ParsedCommand

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Externally visible outcome of one user command."""

    success: bool
    message: str
    actions: list[str] = field(default_factory=list)
    created_project_id: str | None = None
    created_task_ids: list[str] = field(default_factory=list)
    cancelled: bool = False
    preview: bool = False

    @classmethod
    def failure(cls, message: str, actions: Sequence[str] = ()) -> ExecutionResult:
        return cls(success=False, message=message, actions=list(actions))


class CancelToken:
    """Cooperative cancellation shared between the host and one pipeline run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ExecutionCancelledError("Command cancelled by user")


@dataclass
class _ActionOutcome:
    ok: bool
    lines: list[str]
    # Stop processing the rest of the batch.
    fatal: bool = False
    cancelled: bool = False


@dataclass
class _RunState:
    resolved_project_id: str | None = None
    created_task_ids: list[str] = field(default_factory=list)


class ActionExecutor:
    """Runs normalized actions against the project and task stores."""

    def __init__(
        self,
        projects: ProjectStore,
        tasks: TaskStore,
        developers: DeveloperDirectory | None = None,
    ) -> None:
        self.projects = projects
        self.tasks = tasks
        self.developers = developers

    def execute(
        self,
        raw_actions: Sequence[str],
        command: ParsedCommand,
        cancel: CancelToken | None = None,
    ) -> ExecutionResult:
        state = _RunState()
        lines: list[str] = []
        all_ok = True

        for index, raw in enumerate(raw_actions):
            action = normalize_action(raw)
            logger.info("Executing action %d/%d: %r -> %s", index + 1, len(raw_actions), raw, action)

            try:
                if cancel is not None:
                    cancel.raise_if_cancelled()
                outcome = self._run_action(action, raw, command, state, cancel)
            except ExecutionCancelledError:
                return _cancelled(lines, raw_actions[:index], state)
            except Exception as e:  # noqa: BLE001
                logger.exception("Action %r failed unexpectedly", raw)
                outcome = _ActionOutcome(False, [f"Failed to {action}: {e}"])

            lines.extend(outcome.lines)
            all_ok = all_ok and outcome.ok

            if outcome.cancelled:
                return _cancelled(lines, raw_actions[:index + 1], state)

            if outcome.fatal:
                logger.warning("Stopping batch after fatal failure in %r", raw)
                return ExecutionResult(
                    success=False,
                    message="\n".join(lines),
                    actions=list(raw_actions[:index + 1]),
                    created_project_id=state.resolved_project_id,
                    created_task_ids=state.created_task_ids,
                )

        return ExecutionResult(
            success=all_ok,
            message="\n".join(lines),
            actions=list(raw_actions),
            created_project_id=state.resolved_project_id,
            created_task_ids=state.created_task_ids,
        )

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _run_action(
        self,
        action: NormalizedAction | str,
        raw: str,
        command: ParsedCommand,
        state: _RunState,
        cancel: CancelToken | None,
    ) -> _ActionOutcome:
        if is_destructive(action) and not (command.search_text or "").strip():
            kind = "project" if action == NormalizedAction.DELETE_PROJECT else "task"
            logger.error("Delete blocked: no %s identifier", kind)
            return _ActionOutcome(False, [f"Delete operation blocked: no {kind} identifier specified"])

        if action == NormalizedAction.CREATE_PROJECT:
            return self._create_project(command, state)
        if action == NormalizedAction.CREATE_TASK:
            return self._create_tasks(command, state, cancel)
        if action == NormalizedAction.UPDATE_PROJECT:
            return self._update_project(command)
        if action == NormalizedAction.DELETE_PROJECT:
            return self._delete_project(command)
        if action == NormalizedAction.UPDATE_TASK:
            return self._update_task(command)
        if action == NormalizedAction.DELETE_TASK:
            return self._delete_task(command)
        if action == NormalizedAction.ASSIGN_TASK:
            return self._assign_task(command)
        return _ActionOutcome(False, [f"Unknown action: {raw}"])

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def _create_project(self, command: ParsedCommand, state: _RunState) -> _ActionOutcome:
        title = (command.effective_title or "").strip()
        description = (command.effective_description or "").strip() or title
        if not title:
            return _ActionOutcome(False, ["Project title is required"], fatal=True)

        result = self.projects.create(title, description)
        if not result.ok or result.value is None:
            return _ActionOutcome(
                False, [f"Failed to create project: {result.error}"], fatal=True
            )

        state.resolved_project_id = result.value.id
        return _ActionOutcome(True, [f"Project '{title}' created successfully"])

    def _update_project(self, command: ParsedCommand) -> _ActionOutcome:
        found = self.projects.search(command.search_text or "")
        if not found.ok or found.value is None:
            return _ActionOutcome(False, [f"Project not found: {found.error}"])

        project = found.value
        updated = self.projects.update(project.id, command.title, command.description)
        if not updated.ok:
            return _ActionOutcome(False, [f"Failed to update project: {updated.error}"])
        return _ActionOutcome(True, [f"Project '{project.name}' updated successfully"])

    def _delete_project(self, command: ParsedCommand) -> _ActionOutcome:
        found = self.projects.search(command.search_text or "")
        if not found.ok or found.value is None:
            return _ActionOutcome(False, [f"Project not found: {found.error}"])

        project = found.value
        deleted = self.projects.delete(project.id)
        if not deleted.ok:
            return _ActionOutcome(False, [f"Failed to delete project: {deleted.error}"])
        logger.warning("Deleted project %s (%s)", project.name, project.id)
        return _ActionOutcome(True, [f"Project '{project.name}' deleted successfully"])

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def _create_tasks(
        self,
        command: ParsedCommand,
        state: _RunState,
        cancel: CancelToken | None,
    ) -> _ActionOutcome:
        if state.resolved_project_id is None:
            search_text = (command.search_text or "").strip()
            if not search_text:
                return _ActionOutcome(False, [
                    "Cannot create tasks: No project ID available. "
                    "Please specify the project name to search for."
                ])
            found = self.projects.search(search_text)
            if not found.ok or found.value is None:
                return _ActionOutcome(
                    False,
                    [f"Cannot create tasks: Project not found. {found.error}"],
                    fatal=True,
                )
            state.resolved_project_id = found.value.id

        if not command.tasks:
            return _ActionOutcome(False, ["No tasks specified for creation"])

        lines: list[str] = []
        created = 0
        for task in command.tasks:
            if cancel is not None and cancel.cancelled:
                return _ActionOutcome(False, lines, cancelled=True)

            assignee_id, note = self._resolve_assignee(task.assigned_to)
            if note:
                lines.append(note)
            status = TaskStatus.parse(task.status)
            if status is None:
                status = TaskStatus.TODO
                if task.status and task.status.strip():
                    lines.append(
                        f"Unrecognized status '{task.status}' for task '{task.title}'; "
                        f"using '{status.value}'"
                    )

            result = self.tasks.create(
                task.title,
                task.description,
                state.resolved_project_id,
                status=status.value,
                assigned_to=assignee_id,
            )
            if result.ok and result.value is not None:
                created += 1
                state.created_task_ids.append(result.value.id)
                lines.append(f"Task '{task.title}' created")
            else:
                lines.append(f"Failed to create task '{task.title}': {result.error}")

        return _ActionOutcome(created == len(command.tasks), lines)

    def _update_task(self, command: ParsedCommand) -> _ActionOutcome:
        found = self.tasks.search(command.search_text or "")
        if not found.ok or found.value is None:
            return _ActionOutcome(False, [f"Task not found: {found.error}"])

        task = found.value
        lines: list[str] = []
        assignee_id, note = self._resolve_assignee(command.assigned_to)
        if note:
            lines.append(note)
        status = TaskStatus.parse(command.status)
        if status is None and command.status and command.status.strip():
            lines.append(f"Unrecognized status '{command.status}'; status left unchanged")

        updated = self.tasks.update(
            task.id,
            title=command.title,
            description=command.description,
            status=status.value if status is not None else None,
            assigned_to=assignee_id,
        )
        if not updated.ok:
            return _ActionOutcome(False, lines + [f"Failed to update task: {updated.error}"])
        return _ActionOutcome(True, lines + [f"Task '{task.title}' updated successfully"])

    def _delete_task(self, command: ParsedCommand) -> _ActionOutcome:
        found = self.tasks.search(command.search_text or "")
        if not found.ok or found.value is None:
            return _ActionOutcome(False, [f"Task not found: {found.error}"])

        task = found.value
        deleted = self.tasks.delete(task.id)
        if not deleted.ok:
            return _ActionOutcome(False, [f"Failed to delete task: {deleted.error}"])
        logger.warning("Deleted task %s (%s)", task.title, task.id)
        return _ActionOutcome(True, [f"Task '{task.title}' deleted successfully"])

    def _assign_task(self, command: ParsedCommand) -> _ActionOutcome:
        assignee = (command.assigned_to or "").strip()
        if not assignee:
            return _ActionOutcome(False, ["An assignee is required for task assignment"])

        found = self.tasks.search(command.search_text or "")
        if not found.ok or found.value is None:
            return _ActionOutcome(False, [f"Task not found: {found.error}"])

        task = found.value
        assignee_id, note = self._resolve_assignee(assignee)
        updated = self.tasks.update(task.id, assigned_to=assignee_id)
        lines = [note] if note else []
        if not updated.ok:
            return _ActionOutcome(False, lines + [f"Failed to assign task: {updated.error}"])
        return _ActionOutcome(True, lines + [f"Task '{task.title}' assigned to {assignee}"])

    def _resolve_assignee(self, name: str | None) -> tuple[str | None, str | None]:
        """Map a person's name to a developer id when a directory is wired in.

        Unresolved names pass through unchanged; the second item is a
        transcript note explaining that.
        """
        if not name or not name.strip():
            return None, None
        name = name.strip()
        if self.developers is None:
            return name, None
        developer_id = self.developers.find_developer_id(name)
        if developer_id is None:
            return name, f"Could not find developer '{name}'; passing the name through as given."
        return developer_id, None


def _cancelled(lines: list[str], attempted: Sequence[str], state: _RunState) -> ExecutionResult:
    logger.info("Execution cancelled after %d action(s)", len(attempted))
    return ExecutionResult(
        success=False,
        message="\n".join([*lines, "Cancelled before all actions completed."]),
        actions=list(attempted),
        created_project_id=state.resolved_project_id,
        created_task_ids=state.created_task_ids,
        cancelled=True,
    )
