"""Response parsing - the boundary between model free text and typed commands.

The model is asked for a `KEY: value` block but routinely wraps it in code
fences, echoes the instructions, bolds the keys or switches bullet styles.
`parse_response` is a single pass over the cleaned lines and returns either a
`ParsedCommand` or a `ParseError`; it never raises for bad input.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace

from taskwright.models import TaskStatus

from .actions import NormalizedAction, normalize_action, split_actions

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 300

TASK_BULLETS = ("-", "•", "*")
NOISE_PREFIXES = ("```", "OUTPUT:", "Input:")

# Longer keys first so "ASSIGNED TO:" is not read as something shorter.
FIELD_KEYS: tuple[tuple[str, str], ...] = (
    ("PROJECT DESCRIPTION:", "project_description"),
    ("PROJECT TITLE:", "project_title"),
    ("ASSIGNED TO:", "assigned_to"),
    ("ASSIGN TO:", "assigned_to"),
    ("DESCRIPTION:", "description"),
    ("ACTION:", "action"),
    ("SEARCH:", "search_text"),
    ("STATUS:", "status"),
    ("TITLE:", "title"),
)
TASKS_HEADER = "TASKS:"

# Display names the prompts ask for; used to recover an ACTION buried in prose.
CANONICAL_ACTION_NAMES = (
    "Create Project",
    "Create Task",
    "Update Project",
    "Update Task",
    "Delete Project",
    "Delete Task",
)

_HEADER_MARK = re.compile(r"^#+\s*")


@dataclass(frozen=True)
class TaskCommand:
    title: str
    description: str
    status: str = TaskStatus.TODO.value
    assigned_to: str | None = None


@dataclass(frozen=True)
class ParsedCommand:
    """Structured command extracted from one model reply. Immutable."""

    actions: tuple[str, ...]
    title: str | None = None
    description: str | None = None
    project_title: str | None = None
    project_description: str | None = None
    search_text: str | None = None
    assigned_to: str | None = None
    status: str | None = None
    tasks: tuple[TaskCommand, ...] = field(default_factory=tuple)

    @property
    def effective_title(self) -> str | None:
        return self.title or self.project_title

    @property
    def effective_description(self) -> str | None:
        return self.description or self.project_description

    def to_block(self) -> str:
        """Render the canonical field block that `parse_response` reads."""
        lines = [f"ACTION: {', '.join(self.actions)}"]
        for key, attr in (
            ("TITLE", "title"),
            ("DESCRIPTION", "description"),
            ("PROJECT TITLE", "project_title"),
            ("PROJECT DESCRIPTION", "project_description"),
            ("SEARCH", "search_text"),
            ("STATUS", "status"),
            ("ASSIGN TO", "assigned_to"),
        ):
            value = getattr(self, attr)
            if value is not None:
                lines.append(f"{key}: {value}")
        if self.tasks:
            lines.append(TASKS_HEADER)
            lines.extend(f"- {t.title} | {t.description}" for t in self.tasks)
        return "\n".join(lines)


@dataclass(frozen=True)
class ParseError:
    reason: str
    preview: str

    @property
    def message(self) -> str:
        return (
            "Failed to understand AI response. This might be due to:\n"
            "• Malformed response format\n"
            "• Missing ACTION field\n"
            "• Unsupported action type\n\n"
            f"Reason: {self.reason}\n"
            f"Raw response (first {PREVIEW_CHARS} chars): {self.preview}"
        )


ParseOutcome = ParsedCommand | ParseError


def _clean_line(line: str) -> str:
    text = _HEADER_MARK.sub("", line.strip())
    if text.startswith("**") or text.startswith("__"):
        # "**TITLE:** Foo" -> "TITLE: Foo"
        text = text.replace("**", "").replace("__", "").strip()
    return text


def _content_lines(raw: str) -> list[str]:
    lines = []
    for line in raw.splitlines():
        text = line.strip()
        if not text or text.startswith(NOISE_PREFIXES):
            continue
        text = _clean_line(text)
        if text:
            lines.append(text)
    return lines


def _match_field(line: str) -> tuple[str, str | None] | None:
    """Return (attribute, value) for a `KEY: value` line, else None.

    A key with nothing after it yields a None value, not an empty string.
    """
    upper = line.upper()
    for key, attr in FIELD_KEYS:
        if upper.startswith(key):
            value = line[len(key):].strip()
            return attr, (value or None)
    return None


def parse_task_line(line: str) -> TaskCommand | None:
    """Parse one bullet from the TASKS section.

    Tried in order: "Title | Description", "Title: Description", then the
    whole text as both title and description. Delimiters at the start of the
    bullet are dropped, so "- | Ship it" is titled "Ship it".
    """
    content = line.strip()
    if content.startswith(TASK_BULLETS):
        content = content[1:]
    content = content.replace("**", "").strip().lstrip("|: ")
    if not content:
        return None

    for delimiter in ("|", ":"):
        if delimiter in content:
            title, desc = (part.strip() for part in content.split(delimiter, 1))
            if title:
                return TaskCommand(title=title, description=desc or title)

    return TaskCommand(title=content, description=content)


def _infer_action(line: str) -> str | None:
    upper = line.upper()
    if "ACTION:" not in upper:
        return None
    for name in CANONICAL_ACTION_NAMES:
        if name.upper() in upper:
            return name
    return None


def parse_response(raw: str) -> ParseOutcome:
    """Parse a model reply into a `ParsedCommand`, or explain why not."""
    preview = raw.strip()[:PREVIEW_CHARS]
    lines = _content_lines(raw)
    if not lines:
        return ParseError(reason="no content lines in response", preview=preview)

    fields: dict[str, str | None] = {}
    action_phrases: list[str] = []
    tasks: list[TaskCommand] = []
    in_tasks = False

    for line in lines:
        if line.upper() == TASKS_HEADER:
            in_tasks = True
            continue

        matched = _match_field(line)
        if matched is not None:
            attr, value = matched
            in_tasks = False
            if attr == "action":
                action_phrases.extend(split_actions(value))
            else:
                fields[attr] = value
            continue

        if in_tasks and line.startswith(TASK_BULLETS):
            task = parse_task_line(line)
            if task is not None:
                tasks.append(task)
            continue

        if not action_phrases:
            inferred = _infer_action(line)
            if inferred is not None:
                logger.debug("Inferred ACTION from content: %s", inferred)
                action_phrases.append(inferred)

    if not action_phrases:
        return ParseError(reason="no ACTION line found", preview=preview)

    command = ParsedCommand(
        actions=tuple(action_phrases),
        title=fields.get("title"),
        description=fields.get("description"),
        project_title=fields.get("project_title"),
        project_description=fields.get("project_description"),
        search_text=fields.get("search_text"),
        assigned_to=fields.get("assigned_to"),
        status=fields.get("status"),
        tasks=tuple(tasks),
    )

    if any(normalize_action(a) == NormalizedAction.CREATE_PROJECT for a in command.actions):
        if not command.effective_title:
            return ParseError(reason="Create Project reply has no TITLE", preview=preview)
        command = replace(
            command,
            title=command.effective_title,
            description=command.effective_description,
        )

    logger.debug(
        "Parsed command: actions=%s title=%r tasks=%d",
        command.actions, command.title, len(command.tasks),
    )
    return command
