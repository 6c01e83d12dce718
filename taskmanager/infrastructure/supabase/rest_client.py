"""PostgREST-backed task repository.

Reads and writes the tasks table through the Supabase REST API
(``/rest/v1/<table>``). Requests carry the project's anon key and the
signed-in user's access token; row ownership is enforced server-side by
row-level security, so ``user_id`` is never sent.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from taskmanager.core.log_sanitizer import sanitize_for_logging
from taskmanager.domain.errors import RepositoryError
from taskmanager.domain.tasks.models import Task
from taskmanager.infrastructure.supabase.auth_client import error_message_from_response

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]


class PostgrestTaskRepository:
    """TaskRepository implementation over the Supabase REST API."""

    def __init__(
        self,
        supabase_url: str,
        anon_key: str,
        token_provider: TokenProvider,
        table: str = "tasks",
        schema: str = "public",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._table_url = f"{supabase_url.rstrip('/')}/rest/v1/{table}"
        self._anon_key = anon_key
        self._token_provider = token_provider
        self._schema = schema
        self._timeout = timeout
        self._transport = transport

    async def list(self) -> List[Task]:
        rows = await self._request(
            "GET",
            "list",
            params={"select": "*", "order": "created_at.desc"},
        )
        if not isinstance(rows, list):
            raise RepositoryError("Unexpected list response", code="INVALID_PAYLOAD")
        try:
            return [Task.model_validate(row) for row in rows]
        except PydanticValidationError as e:
            raise RepositoryError(f"Invalid task row: {e}", code="INVALID_PAYLOAD") from e

    async def insert(self, title: str) -> None:
        title = (title or "").strip()
        if not title:
            raise RepositoryError("Task title must not be empty", code="EMPTY_TITLE")
        await self._request(
            "POST",
            "insert",
            payload=[{"title": title, "is_complete": False}],
            prefer="return=minimal",
        )

    async def update(self, task_id: str, is_complete: bool) -> None:
        rows = await self._request(
            "PATCH",
            "update",
            params={"id": f"eq.{task_id}"},
            payload={"is_complete": bool(is_complete)},
            prefer="return=representation",
        )
        if not rows:
            raise RepositoryError(f"Task {task_id} not found", code="NOT_FOUND")

    async def delete(self, task_id: str) -> None:
        rows = await self._request(
            "DELETE",
            "delete",
            params={"id": f"eq.{task_id}"},
            prefer="return=representation",
        )
        if not rows:
            raise RepositoryError(f"Task {task_id} not found", code="NOT_FOUND")

    async def _headers(self, prefer: Optional[str]) -> Dict[str, str]:
        # Without a session PostgREST sees the anon role and RLS hides every row
        token = await self._token_provider() or self._anon_key
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {token}",
            "Accept-Profile": self._schema,
            "Content-Profile": self._schema,
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        operation: str,
        *,
        params: Optional[Dict[str, str]] = None,
        payload: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        headers = await self._headers(prefer)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(
                    method, self._table_url, params=params, json=payload, headers=headers
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = error_message_from_response(e.response)
            logger.warning(
                "Task %s rejected with %s: %s",
                operation, e.response.status_code, sanitize_for_logging(message)
            )
            raise RepositoryError(message, code=f"HTTP_{e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("Task %s failed: %s", operation, sanitize_for_logging(e))
            raise RepositoryError(f"Task {operation} failed: {e}", code="NETWORK_ERROR") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RepositoryError(f"Task {operation} returned invalid JSON", code="INVALID_PAYLOAD") from e
