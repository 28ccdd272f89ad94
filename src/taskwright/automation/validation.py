"""Pre-execution checks for a parsed batch.

Both checks run before any repository call; a failure rejects the whole batch
so nothing is ever half-applied because of a bad reply.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .actions import CREATE_ACTIONS, NormalizedAction
from .intent import DELETE_WORDS, UPDATE_WORDS, contains_any
from .parser import ParsedCommand

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error_message: str = ""

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(True)

    @classmethod
    def fail(cls, message: str) -> ValidationResult:
        return cls(False, message)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def check_intent_contradiction(
    user_text: str,
    actions: Sequence[NormalizedAction | str],
) -> ValidationResult:
    """Refuse a CREATE the user never asked for.

    If the user said delete/remove (or update/modify/edit/change) and the
    model still produced a create action, the model misread the request.
    """
    if not any(a in CREATE_ACTIONS for a in actions):
        return ValidationResult.ok()

    text = user_text.lower()
    if contains_any(text, DELETE_WORDS):
        requested, examples = "DELETE", ("Delete [name] project", "Remove [name] project")
    elif contains_any(text, UPDATE_WORDS):
        requested, examples = "UPDATE", (
            "Update [name] project description",
            "Modify [name] project",
        )
    else:
        return ValidationResult.ok()

    logger.error("SAFETY BLOCK: user requested %s but the reply contains a CREATE action", requested)
    return ValidationResult.fail(
        f"Error: You requested to {requested} something, but the system tried to CREATE instead.\n\n"
        "This appears to be a misinterpretation. Please try:\n"
        f"• '{examples[0]}'\n"
        f"• '{examples[1]}'\n\n"
        f'Your original request: "{user_text}"'
    )


def validate_actions(
    actions: Sequence[NormalizedAction | str],
    command: ParsedCommand,
) -> ValidationResult:
    """Check every action has the fields it needs; first failure rejects the batch."""
    for index, action in enumerate(actions):
        if action == NormalizedAction.CREATE_PROJECT:
            if _blank(command.effective_title):
                return ValidationResult.fail(
                    "Create Project action requires a title. Please specify the project name."
                )

        elif action == NormalizedAction.CREATE_TASK:
            if not command.tasks:
                return ValidationResult.fail(
                    "Create Task action requires task details. "
                    "Please specify what tasks to create."
                )
            project_first = NormalizedAction.CREATE_PROJECT in actions[:index]
            if _blank(command.search_text) and not project_first:
                return ValidationResult.fail(
                    "Create Task action requires either:\n"
                    "• A project name to search for (e.g. 'for mobile app project')\n"
                    "• Or create the project first"
                )

        elif action in (NormalizedAction.UPDATE_PROJECT, NormalizedAction.DELETE_PROJECT):
            if _blank(command.search_text):
                verb = str(action).split()[0]
                return ValidationResult.fail(
                    f"{str(action).capitalize()} action requires a project identifier. "
                    f"Please specify which project to {verb}."
                )

        elif action in (NormalizedAction.UPDATE_TASK, NormalizedAction.DELETE_TASK):
            if _blank(command.search_text):
                verb = str(action).split()[0]
                return ValidationResult.fail(
                    f"{str(action).capitalize()} action requires a task identifier. "
                    f"Please specify which task to {verb}."
                )

        elif action == NormalizedAction.ASSIGN_TASK:
            if _blank(command.search_text) or _blank(command.assigned_to):
                return ValidationResult.fail(
                    "Assign Task action requires both:\n"
                    "• Task identifier (which task to assign)\n"
                    "• Assignee (who to assign it to)"
                )

    return ValidationResult.ok()
