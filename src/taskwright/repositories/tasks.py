from __future__ import annotations

import logging

from taskwright.models import Task, TaskStatus

from .base import ApiClient, RepoResult, drop_none, path_segment

logger = logging.getLogger(__name__)


class TaskRepository:
    """Tasks over the backend REST API."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def list_for_project(self, project_id: str) -> RepoResult[list[Task]]:
        return self._client.request(
            "GET", "tasks", Task,
            params={"projectId": project_id},
            default_error="Failed to fetch tasks", many=True,
        )

    def create(
        self,
        title: str,
        description: str,
        project_id: str,
        status: str = TaskStatus.TODO.value,
        assigned_to: str | None = None,
    ) -> RepoResult[Task]:
        logger.info("Creating task %r in project %s", title, project_id)
        return self._client.request(
            "POST", "tasks", Task,
            json=drop_none({
                "title": title,
                "description": description,
                "projectId": project_id,
                "status": status,
                "assignedTo": assigned_to,
            }),
            default_error="Failed to create task",
        )

    def update(
        self,
        task_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        status: str | None = None,
        assigned_to: str | None = None,
    ) -> RepoResult[Task]:
        return self._client.request(
            "PUT", f"tasks/{path_segment(task_id)}", Task,
            json=drop_none({
                "title": title,
                "description": description,
                "status": status,
                "assignedTo": assigned_to,
            }),
            default_error="Failed to update task",
        )

    def delete(self, task_id: str) -> RepoResult[None]:
        logger.info("Deleting task: %s", task_id)
        return self._client.request(
            "DELETE", f"tasks/{path_segment(task_id)}", None,
            default_error="Failed to delete task",
        )

    def search(self, text: str) -> RepoResult[Task]:
        return self._client.request(
            "GET", f"tasks/search/{path_segment(text)}", Task,
            default_error="No matching task found",
        )
