"""Canonical action vocabulary and the rules that map model phrasing onto it."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from .intent import CREATE_WORDS, DELETE_WORDS, UPDATE_WORDS, contains_any

logger = logging.getLogger(__name__)


class NormalizedAction(str, Enum):
    """Actions the executor knows how to run.

    Members compare equal to their string values, so an unrecognized phrase
    can travel through the same lists as a plain lower-cased string.
    """

    CREATE_PROJECT = "create project"
    CREATE_TASK = "create task"
    UPDATE_PROJECT = "update project"
    UPDATE_TASK = "update task"
    DELETE_PROJECT = "delete project"
    DELETE_TASK = "delete task"
    ASSIGN_TASK = "assign task"

    def __str__(self) -> str:
        return self.value


# Tuples, not sets: membership must compare by value so plain strings match.
CREATE_ACTIONS = (NormalizedAction.CREATE_PROJECT, NormalizedAction.CREATE_TASK)
DESTRUCTIVE_ACTIONS = (NormalizedAction.DELETE_PROJECT, NormalizedAction.DELETE_TASK)


def is_destructive(action: NormalizedAction | str) -> bool:
    """Single source of truth for "this action deletes data"."""
    return action in DESTRUCTIVE_ACTIONS


def normalize_action(phrase: str) -> NormalizedAction | str:
    """Map a raw action phrase to a `NormalizedAction`.

    Creation may be mentioned anywhere in the phrase. Update and delete must
    *lead* the phrase, so "task to delete later" never deletes anything.
    Returns the lower-cased phrase when nothing matches.
    """
    text = phrase.strip().lower()
    has_project = "project" in text
    has_task = "task" in text

    if contains_any(text, CREATE_WORDS):
        if has_project:
            return NormalizedAction.CREATE_PROJECT
        if has_task:
            return NormalizedAction.CREATE_TASK

    if text.startswith(UPDATE_WORDS):
        if has_project:
            return NormalizedAction.UPDATE_PROJECT
        if has_task:
            return NormalizedAction.UPDATE_TASK

    if text.startswith(DELETE_WORDS):
        if has_project:
            logger.warning("Destructive action detected: %r -> delete project", phrase)
            return NormalizedAction.DELETE_PROJECT
        if has_task:
            logger.warning("Destructive action detected: %r -> delete task", phrase)
            return NormalizedAction.DELETE_TASK

    if "assign" in text:
        return NormalizedAction.ASSIGN_TASK

    logger.debug("No action pattern matched, keeping %r", text)
    return text


def split_actions(value: str | Iterable[object] | None) -> list[str]:
    """Accept a single phrase, a comma-separated string or a list of phrases."""
    if value is None:
        return []
    if isinstance(value, str):
        parts: Iterable[object] = value.split(",")
    else:
        parts = value
    return [p.strip() for p in parts if isinstance(p, str) and p.strip()]


def normalize_all(raw_actions: Iterable[str]) -> list[NormalizedAction | str]:
    return [normalize_action(a) for a in raw_actions]
