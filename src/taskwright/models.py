from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# =============================================================================
# Backend records
# =============================================================================


class TaskStatus(str, Enum):
    """Task workflow states as the backend spells them."""

    TODO = "to-do"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    DONE = "done"

    @classmethod
    def parse(cls, value: str | None) -> TaskStatus | None:
        """Map common spellings to a status, or None when unrecognized."""
        if not value or not value.strip():
            return None
        key = value.strip().lower().replace("_", "-").replace(" ", "-")
        aliases = {
            "todo": cls.TODO,
            "to-do": cls.TODO,
            "open": cls.TODO,
            "in-progress": cls.IN_PROGRESS,
            "inprogress": cls.IN_PROGRESS,
            "doing": cls.IN_PROGRESS,
            "blocked": cls.BLOCKED,
            "done": cls.DONE,
            "complete": cls.DONE,
            "completed": cls.DONE,
        }
        return aliases.get(key)


class Project(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    name: str
    description: str = ""
    created_by: str | None = Field(default=None, alias="createdBy")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")


class Task(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    title: str
    description: str = ""
    status: str = TaskStatus.TODO.value
    block_reason: str | None = Field(default=None, alias="blockReason")
    project_id: str | None = Field(default=None, alias="projectId")
    assigned_to: str | None = Field(default=None, alias="assignedTo")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    name: str
    email: str | None = None
    role: str | None = None


class ApiEnvelope(BaseModel, Generic[T]):
    """The `{success, message, data}` wrapper every backend route returns."""

    success: bool = False
    message: str | None = None
    data: T | None = None
    error: str | None = None


# =============================================================================
# HTTP surface
# =============================================================================


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class LLMHealthResponse(BaseModel):
    reachable: bool
    ready: bool = False
    model_count: int | None = None
    current_model: str | None = None
    error: str | None = None


class CommandRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Free-text instruction from the user")
    preview: bool = Field(
        default=False, description="Parse and validate only; do not touch the backend."
    )


class ExecutionResultResponse(BaseModel):
    success: bool
    message: str
    actions: list[str] = Field(default_factory=list)
    created_project_id: str | None = None
    created_task_ids: list[str] = Field(default_factory=list)
    cancelled: bool = False
    preview: bool = False

    @classmethod
    def from_result(cls, result: Any) -> ExecutionResultResponse:
        return cls(
            success=result.success,
            message=result.message,
            actions=list(result.actions),
            created_project_id=result.created_project_id,
            created_task_ids=list(result.created_task_ids),
            cancelled=result.cancelled,
            preview=result.preview,
        )
