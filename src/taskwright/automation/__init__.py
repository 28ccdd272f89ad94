"""Natural-language command automation for projects and tasks."""

from .actions import NormalizedAction, is_destructive, normalize_action, normalize_all, split_actions
from .executor import ActionExecutor, CancelToken, ExecutionResult
from .intent import UserIntent, detect_intent
from .parser import ParsedCommand, ParseError, TaskCommand, parse_response, parse_task_line
from .pipeline import CommandPipeline
from .prompts import build_prompt
from .validation import ValidationResult, check_intent_contradiction, validate_actions

__all__ = [
    "ActionExecutor",
    "CancelToken",
    "CommandPipeline",
    "ExecutionResult",
    "NormalizedAction",
    "ParseError",
    "ParsedCommand",
    "TaskCommand",
    "UserIntent",
    "ValidationResult",
    "build_prompt",
    "check_intent_contradiction",
    "detect_intent",
    "is_destructive",
    "normalize_action",
    "normalize_all",
    "parse_response",
    "parse_task_line",
    "validate_actions",
]
