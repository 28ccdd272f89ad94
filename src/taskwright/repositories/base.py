"""Shared plumbing for the project/task backend.

Repositories never raise for transport or HTTP failures. Every call returns a
`RepoResult`, so the executor can turn a failure into a transcript line.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from taskwright.models import ApiEnvelope, Project, Task
from taskwright.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class RepoResult(Generic[T]):
    """Success-or-error outcome of one backend call."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> RepoResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, message: str) -> RepoResult[T]:
        return cls(error=message or "Unknown error")


class ProjectStore(Protocol):
    def create(self, name: str, description: str) -> RepoResult[Project]: ...

    def search(self, text: str) -> RepoResult[Project]: ...

    def update(
        self,
        project_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> RepoResult[Project]: ...

    def delete(self, project_id: str) -> RepoResult[None]: ...


class TaskStore(Protocol):
    def create(
        self,
        title: str,
        description: str,
        project_id: str,
        status: str = "to-do",
        assigned_to: str | None = None,
    ) -> RepoResult[Task]: ...

    def search(self, text: str) -> RepoResult[Task]: ...

    def update(
        self,
        task_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        status: str | None = None,
        assigned_to: str | None = None,
    ) -> RepoResult[Task]: ...

    def delete(self, task_id: str) -> RepoResult[None]: ...


def path_segment(text: str) -> str:
    """Encode free text for use as a single URL path segment."""
    return quote(text.strip(), safe="")


def drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


class ApiClient:
    """Thin httpx wrapper: base URL, bearer token, timeouts, envelope decoding."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        token: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        resolved_token = token if token is not None else settings.api_token
        if resolved_token:
            headers["Authorization"] = f"Bearer {resolved_token}"

        self._client = httpx.Client(
            base_url=(base_url or settings.api_url).rstrip("/") + "/",
            headers=headers,
            timeout=timeout_seconds or settings.http_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        model: type[M] | None,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        default_error: str,
        many: bool = False,
    ) -> RepoResult[Any]:
        """Send one request and decode the envelope's `data` into `model`.

        `model=None` means only success/failure matters (e.g. DELETE).
        `many=True` decodes a list payload and treats a missing one as empty.
        """
        try:
            res = self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            logger.error("Network error on %s %s: %s", method, path, e)
            return RepoResult.failure(str(e) or "Network error occurred")

        envelope = _decode_envelope(res)

        if res.is_error:
            message = (envelope.message or envelope.error) if envelope else None
            logger.warning("API error on %s %s: HTTP %s", method, path, res.status_code)
            return RepoResult.failure(message or f"HTTP {res.status_code}: {res.reason_phrase}")

        if model is None:
            if envelope is not None and not envelope.success and envelope.message:
                return RepoResult.failure(envelope.message)
            return RepoResult.success(None)

        if many and (envelope is None or envelope.data is None):
            return RepoResult.success([])

        if envelope is None or not envelope.success or envelope.data is None:
            message = envelope.message if envelope else None
            return RepoResult.failure(message or default_error)

        try:
            if many:
                return RepoResult.success([model.model_validate(item) for item in envelope.data])
            return RepoResult.success(model.model_validate(envelope.data))
        except ValidationError as e:
            logger.warning("Unexpected payload shape on %s %s: %s", method, path, e)
            return RepoResult.failure(f"Unexpected response from server: {default_error}")


def _decode_envelope(res: httpx.Response) -> ApiEnvelope[Any] | None:
    if not res.content:
        return None
    try:
        return ApiEnvelope[Any].model_validate(res.json())
    except (ValueError, ValidationError):
        return None
