"""Intent classification for free-text project/task commands.

A keyword heuristic picks one intent before any model call, so the prompt can
be narrowed to a single field layout. Destructive verbs are checked first.
"""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)

DELETE_WORDS = ("delete", "remove")
UPDATE_WORDS = ("update", "modify", "edit", "change")
CREATE_WORDS = ("create", "add", "new", "make")

# Connectives that point a new task at an existing project ("task for X").
TARGET_WORDS = ("for", "to", "in")

USAGE_HINT = (
    "Could not understand your request. Please try:\n"
    "• 'Create a project called [name]'\n"
    "• 'Create task for [project name]'\n"
    "• 'Update [project name] project'\n"
    "• 'Delete [project name] project'"
)


class UserIntent(Enum):
    """What the user wants done, before the model is consulted."""

    CREATE_PROJECT = "create_project"
    CREATE_TASK = "create_task"
    UPDATE_PROJECT = "update_project"
    UPDATE_TASK = "update_task"
    DELETE_PROJECT = "delete_project"
    DELETE_TASK = "delete_task"
    UNKNOWN = "unknown"


def contains_any(text: str, words: tuple[str, ...]) -> bool:
    return any(word in text for word in words)


def detect_intent(user_text: str) -> UserIntent:
    """Classify raw user text into a `UserIntent`.

    Plain substring tests on the lower-cased text, in priority order
    delete > update > create.
    """
    text = user_text.lower()
    has_project = "project" in text
    has_task = "task" in text

    if contains_any(text, DELETE_WORDS):
        if has_project:
            return UserIntent.DELETE_PROJECT
        if has_task:
            return UserIntent.DELETE_TASK

    if contains_any(text, UPDATE_WORDS):
        if has_project:
            return UserIntent.UPDATE_PROJECT
        if has_task:
            return UserIntent.UPDATE_TASK

    if contains_any(text, CREATE_WORDS):
        if has_task and contains_any(text, TARGET_WORDS):
            return UserIntent.CREATE_TASK
        if has_task and not has_project:
            return UserIntent.CREATE_TASK
        # Also the default for a bare "make me something".
        return UserIntent.CREATE_PROJECT

    logger.debug("No intent keywords matched: %r", user_text[:80])
    return UserIntent.UNKNOWN
