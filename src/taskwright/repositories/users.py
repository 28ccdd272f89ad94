from __future__ import annotations

import logging

from taskwright.models import User

from .base import ApiClient, RepoResult

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def developers(self) -> RepoResult[list[User]]:
        return self._client.request(
            "GET", "users/developers", User,
            default_error="Failed to fetch developers", many=True,
        )


class DeveloperDirectory:
    """Memoized developer list used to turn assignee names into user ids.

    The cache lives on this object, not in module state; call `invalidate()`
    after the team changes.
    """

    def __init__(self, users: UserRepository) -> None:
        self._users = users
        self._cached: list[User] | None = None

    def invalidate(self) -> None:
        self._cached = None

    def developers(self, *, force_refresh: bool = False) -> list[User]:
        if self._cached is not None and not force_refresh:
            return self._cached

        result = self._users.developers()
        if not result.ok:
            logger.error("Failed to load developers: %s", result.error)
            return []
        self._cached = list(result.value or [])
        return self._cached

    def find_developer_id(self, name: str | None) -> str | None:
        """Exact (case-insensitive) name match first, then substring match."""
        if not name or not name.strip():
            return None
        needle = name.strip().lower()
        developers = self.developers()

        for dev in developers:
            if dev.name.lower() == needle:
                return dev.id
        for dev in developers:
            if needle in dev.name.lower():
                return dev.id
        return None
