"""Command pipeline - one free-text instruction in, one `ExecutionResult` out.

    classify -> prompt -> stream reply -> parse -> normalize
             -> contradiction guard -> field validation -> execute

Every failure along the way becomes a user-facing message; nothing here
raises to the caller.
"""

from __future__ import annotations

import logging

from taskwright.errors import ExecutionCancelledError, record_error
from taskwright.providers.base import TextGenerationService
from taskwright.providers.ollama import OllamaProvider
from taskwright.repositories.base import ApiClient, ProjectStore, TaskStore
from taskwright.repositories.projects import ProjectRepository
from taskwright.repositories.tasks import TaskRepository
from taskwright.repositories.users import DeveloperDirectory, UserRepository
from taskwright.settings import settings

from .actions import normalize_all
from .executor import ActionExecutor, CancelToken, ExecutionResult
from .intent import USAGE_HINT, UserIntent, detect_intent
from .parser import ParseError, ParsedCommand, parse_response
from .prompts import build_prompt
from .validation import check_intent_contradiction, validate_actions

logger = logging.getLogger(__name__)

NOT_READY_MESSAGE = (
    "No AI model is currently loaded. Please load a model first "
    "(pull one with Ollama or set TASKWRIGHT_OLLAMA_MODEL)."
)
EMPTY_REPLY_MESSAGE = "AI returned empty response. Please try rephrasing your request."
NO_ACTIONS_MESSAGE = "No valid actions detected in AI response."


class CommandPipeline:
    """Turns one natural-language command into backend mutations."""

    def __init__(
        self,
        generator: TextGenerationService,
        projects: ProjectStore,
        tasks: TaskStore,
        developers: DeveloperDirectory | None = None,
    ) -> None:
        self.generator = generator
        self.executor = ActionExecutor(projects, tasks, developers)

    @classmethod
    def from_settings(cls) -> CommandPipeline:
        """Wire the Ollama provider and the REST repositories from `settings`."""
        client = ApiClient()
        return cls(
            OllamaProvider(),
            ProjectRepository(client),
            TaskRepository(client),
            DeveloperDirectory(UserRepository(client)),
        )

    def process_command(
        self,
        raw_text: str,
        *,
        cancel: CancelToken | None = None,
        preview: bool = False,
    ) -> ExecutionResult:
        try:
            return self._process(raw_text, cancel, preview or settings.preview_mode)
        except ExecutionCancelledError:
            logger.info("Command cancelled before execution")
            return ExecutionResult(
                success=False, message="Command cancelled.", cancelled=True
            )
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected failure while processing command")
            record_error(
                source="taskwright",
                operation="process_command",
                exc=e,
                context={"text_length": len(raw_text)},
            )
            return ExecutionResult.failure(f"Failed to process command: {e}")

    def _process(
        self,
        raw_text: str,
        cancel: CancelToken | None,
        preview: bool,
    ) -> ExecutionResult:
        if not self.generator.is_ready():
            logger.warning("Rejecting command: no model ready")
            return ExecutionResult.failure(NOT_READY_MESSAGE)

        intent = detect_intent(raw_text)
        logger.info("Detected intent: %s", intent.value)
        if intent is UserIntent.UNKNOWN:
            return ExecutionResult.failure(USAGE_HINT)

        prompt = build_prompt(intent, raw_text)

        reply = self._generate(prompt, cancel)
        if isinstance(reply, ExecutionResult):
            return reply

        parsed = parse_response(reply)
        if isinstance(parsed, ParseError):
            logger.warning("Could not parse reply: %s", parsed.reason)
            return ExecutionResult.failure(parsed.message)

        actions = normalize_all(parsed.actions)
        if not actions:
            return ExecutionResult.failure(NO_ACTIONS_MESSAGE)
        logger.info("Normalized actions: %s", [str(a) for a in actions])

        guard = check_intent_contradiction(raw_text, actions)
        if not guard.is_valid:
            return ExecutionResult.failure(guard.error_message, parsed.actions)

        validation = validate_actions(actions, parsed)
        if not validation.is_valid:
            logger.warning("Validation failed: %s", validation.error_message)
            return ExecutionResult.failure(validation.error_message, parsed.actions)

        if preview:
            return _preview_result(reply, parsed, [str(a) for a in actions])

        return self.executor.execute(parsed.actions, parsed, cancel)

    def _generate(self, prompt: str, cancel: CancelToken | None) -> str | ExecutionResult:
        fragments: list[str] = []
        try:
            for fragment in self.generator.generate(prompt):
                if cancel is not None:
                    cancel.raise_if_cancelled()
                fragments.append(fragment)
        except ExecutionCancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.error("Generation failed: %s", e)
            return ExecutionResult.failure(
                f"AI generation failed: {e}\n\nPlease try again, or check that the model is running."
            )

        reply = "".join(fragments)
        if not reply.strip():
            return ExecutionResult.failure(EMPTY_REPLY_MESSAGE)
        logger.debug("Reply received (%d chars)", len(reply))
        return reply


def _preview_result(reply: str, command: ParsedCommand, plan: list[str]) -> ExecutionResult:
    steps = "\n".join(f"{i}. {step}" for i, step in enumerate(plan, start=1))
    message = (
        "Preview only, nothing was executed.\n\n"
        f"Planned actions:\n{steps}\n\n"
        f"Parsed command:\n{command.to_block()}\n\n"
        f"Raw AI response:\n{reply.strip()}"
    )
    return ExecutionResult(
        success=True,
        message=message,
        actions=list(command.actions),
        preview=True,
    )
