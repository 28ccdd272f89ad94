from __future__ import annotations

import pytest

from taskwright.automation.actions import NormalizedAction as A
from taskwright.automation.parser import ParsedCommand, TaskCommand
from taskwright.automation.validation import check_intent_contradiction, validate_actions

TASK = TaskCommand(title="Login", description="Build login")


class TestContradictionGuard:
    def test_delete_request_with_create_action_is_blocked(self) -> None:
        result = check_intent_contradiction("Delete the Blog project", [A.CREATE_PROJECT])
        assert not result.is_valid
        assert "requested to DELETE" in result.error_message
        assert 'Your original request: "Delete the Blog project"' in result.error_message

    def test_update_request_with_create_action_is_blocked(self) -> None:
        result = check_intent_contradiction("modify tasks", [A.CREATE_TASK])
        assert not result.is_valid
        assert "requested to UPDATE" in result.error_message

    def test_delete_wins_over_update_in_message(self) -> None:
        result = check_intent_contradiction("remove and update", [A.CREATE_TASK])
        assert "DELETE" in result.error_message

    def test_no_create_action_passes(self) -> None:
        assert check_intent_contradiction("Delete the Blog project", [A.DELETE_PROJECT]).is_valid

    def test_create_request_passes(self) -> None:
        assert check_intent_contradiction("Create the Blog project", [A.CREATE_PROJECT]).is_valid

    def test_plain_string_actions_are_understood(self) -> None:
        assert not check_intent_contradiction("delete x", ["create project"]).is_valid


class TestValidateActions:
    def test_create_project_needs_title(self) -> None:
        result = validate_actions([A.CREATE_PROJECT], ParsedCommand(actions=("Create Project",)))
        assert not result.is_valid
        assert "requires a title" in result.error_message

    def test_create_project_accepts_project_title(self) -> None:
        cmd = ParsedCommand(actions=("Create Project",), project_title="Blog")
        assert validate_actions([A.CREATE_PROJECT], cmd).is_valid

    def test_create_task_needs_tasks(self) -> None:
        cmd = ParsedCommand(actions=("Create Task",), search_text="web")
        result = validate_actions([A.CREATE_TASK], cmd)
        assert "requires task details" in result.error_message

    def test_create_task_needs_project(self) -> None:
        cmd = ParsedCommand(actions=("Create Task",), tasks=(TASK,))
        result = validate_actions([A.CREATE_TASK], cmd)
        assert not result.is_valid
        assert "project name to search for" in result.error_message

    def test_create_task_after_create_project_needs_no_search(self) -> None:
        cmd = ParsedCommand(actions=("Create Project", "Create Task"), title="Shop", tasks=(TASK,))
        assert validate_actions([A.CREATE_PROJECT, A.CREATE_TASK], cmd).is_valid

    def test_create_project_must_precede(self) -> None:
        cmd = ParsedCommand(actions=("Create Task", "Create Project"), title="Shop", tasks=(TASK,))
        assert not validate_actions([A.CREATE_TASK, A.CREATE_PROJECT], cmd).is_valid

    @pytest.mark.parametrize("action,noun", [
        (A.UPDATE_PROJECT, "project"),
        (A.DELETE_PROJECT, "project"),
        (A.UPDATE_TASK, "task"),
        (A.DELETE_TASK, "task"),
    ])
    def test_mutations_need_identifier(self, action: A, noun: str) -> None:
        cmd = ParsedCommand(actions=(str(action),), search_text="   ")
        result = validate_actions([action], cmd)
        assert not result.is_valid
        assert f"requires a {noun} identifier" in result.error_message

    def test_assign_needs_task_and_assignee(self) -> None:
        cmd = ParsedCommand(actions=("Assign Task",), search_text="Login")
        assert not validate_actions([A.ASSIGN_TASK], cmd).is_valid
        cmd = ParsedCommand(actions=("Assign Task",), search_text="Login", assigned_to="Alice")
        assert validate_actions([A.ASSIGN_TASK], cmd).is_valid

    def test_first_failure_wins(self) -> None:
        cmd = ParsedCommand(actions=("Update Project", "Create Task"))
        result = validate_actions([A.UPDATE_PROJECT, A.CREATE_TASK], cmd)
        assert "project identifier" in result.error_message

    def test_unknown_actions_pass_through(self) -> None:
        cmd = ParsedCommand(actions=("archive",))
        assert validate_actions(["archive"], cmd).is_valid
