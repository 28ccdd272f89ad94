"""Backend repositories for projects, tasks and developers."""

from .base import ApiClient, ProjectStore, RepoResult, TaskStore
from .projects import ProjectRepository
from .tasks import TaskRepository
from .users import DeveloperDirectory, UserRepository

__all__ = [
    "ApiClient",
    "DeveloperDirectory",
    "ProjectRepository",
    "ProjectStore",
    "RepoResult",
    "TaskRepository",
    "TaskStore",
    "UserRepository",
]
