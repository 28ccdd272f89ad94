from __future__ import annotations

import logging

from taskwright.models import Project

from .base import ApiClient, RepoResult, drop_none, path_segment

logger = logging.getLogger(__name__)


class ProjectRepository:
    """Projects over the backend REST API."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def list_all(self) -> RepoResult[list[Project]]:
        return self._client.request(
            "GET", "projects", Project,
            default_error="Failed to fetch projects", many=True,
        )

    def get(self, project_id: str) -> RepoResult[Project]:
        return self._client.request(
            "GET", f"projects/{path_segment(project_id)}", Project,
            default_error="Project not found",
        )

    def create(self, name: str, description: str) -> RepoResult[Project]:
        logger.info("Creating project: %s", name)
        return self._client.request(
            "POST", "projects", Project,
            json={"name": name, "description": description},
            default_error="Failed to create project",
        )

    def update(
        self,
        project_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> RepoResult[Project]:
        return self._client.request(
            "PUT", f"projects/{path_segment(project_id)}", Project,
            json=drop_none({"name": name, "description": description}),
            default_error="Failed to update project",
        )

    def delete(self, project_id: str) -> RepoResult[None]:
        logger.info("Deleting project: %s", project_id)
        return self._client.request(
            "DELETE", f"projects/{path_segment(project_id)}", None,
            default_error="Failed to delete project",
        )

    def search(self, text: str) -> RepoResult[Project]:
        """Best fuzzy match for `text`; the backend ranks candidates."""
        return self._client.request(
            "GET", f"projects/search/{path_segment(text)}", Project,
            default_error="No matching project found",
        )
