"""
In-process stand-in for the hosted backend.

Provides the same SessionStore / TaskRepository / ChangeFeed surfaces as the
Supabase adapters without a project, for local development
(USE_MOCK_BACKEND=true) and tests. Rows are scoped to the user behind the
access token, the way row-level security scopes them in the real backend, and
every mutation schedules a change notification for all subscribers.
"""

import asyncio
import itertools
import logging
import secrets
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from taskmanager.core.log_sanitizer import sanitize_for_logging
from taskmanager.domain.errors import AuthenticationError, RepositoryError
from taskmanager.domain.sessions.models import Session
from taskmanager.domain.tasks.models import Task
from taskmanager.interfaces.sessions import SessionListener
from taskmanager.interfaces.subscriptions import ListenerSet, Subscription
from taskmanager.interfaces.tasks import ChangeListener

logger = logging.getLogger(__name__)

SESSION_LIFETIME_SECONDS = 3600


class InMemoryBackend:
    """Users, tokens, task rows and change subscribers shared by all tabs."""

    def __init__(self, session_lifetime: float = SESSION_LIFETIME_SECONDS):
        self.session_lifetime = session_lifetime
        self._passwords: Dict[str, str] = {}
        self._user_ids: Dict[str, str] = {}
        self._access_tokens: Dict[str, Session] = {}
        self._refresh_tokens: Dict[str, str] = {}
        self._rows: Dict[str, Task] = {}
        self._ids = itertools.count(1)
        self._change_listeners = ListenerSet("Change listener")
        self._pending: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def register(self, email: str, password: str) -> str:
        if email in self._passwords:
            raise AuthenticationError("User already registered", code="SIGN_UP_REJECTED")
        if len(password) < 6:
            raise AuthenticationError("Password should be at least 6 characters", code="SIGN_UP_REJECTED")
        self._passwords[email] = password
        self._user_ids[email] = str(uuid.uuid4())
        logger.info("Registered mock user %s", sanitize_for_logging(email))
        return self._user_ids[email]

    def issue_session(self, email: str, password: str) -> Session:
        if self._passwords.get(email) != password:
            raise AuthenticationError("Invalid login credentials", code="INVALID_CREDENTIALS")
        return self._new_session(email)

    def refresh(self, refresh_token: str) -> Session:
        email = self._refresh_tokens.pop(refresh_token, None)
        if email is None:
            raise AuthenticationError("Invalid Refresh Token", code="REFRESH_FAILED")
        return self._new_session(email)

    def revoke(self, access_token: str) -> None:
        session = self._access_tokens.pop(access_token, None)
        if session is not None:
            self._refresh_tokens.pop(session.refresh_token, None)

    def _new_session(self, email: str) -> Session:
        session = Session(
            access_token=f"mock-access-{secrets.token_urlsafe(16)}",
            refresh_token=f"mock-refresh-{secrets.token_urlsafe(16)}",
            expires_at=time.time() + self.session_lifetime,
            user_id=self._user_ids[email],
            user_email=email,
        )
        self._access_tokens[session.access_token] = session
        self._refresh_tokens[session.refresh_token] = email
        return session

    def _user_for_token(self, access_token: Optional[str]) -> str:
        session = self._access_tokens.get(access_token or "")
        if session is None or session.is_expired():
            raise RepositoryError("JWT expired or missing", code="HTTP_401")
        return session.user_id

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------
    def list_rows(self, access_token: Optional[str]) -> List[Task]:
        user_id = self._user_for_token(access_token)
        rows = [task for task in self._rows.values() if task.user_id == user_id]
        # Ids grow with insertion order and break created_at ties
        return sorted(rows, key=lambda task: (task.created_at, int(task.id)), reverse=True)

    def insert_row(self, access_token: Optional[str], title: str) -> Task:
        user_id = self._user_for_token(access_token)
        title = (title or "").strip()
        if not title:
            raise RepositoryError("Task title must not be empty", code="EMPTY_TITLE")
        task = Task(
            id=str(next(self._ids)),
            title=title,
            is_complete=False,
            created_at=datetime.now(timezone.utc),
            user_id=user_id,
        )
        self._rows[task.id] = task
        self._schedule_change()
        return task

    def update_row(self, access_token: Optional[str], task_id: str, is_complete: bool) -> Task:
        task = self._owned_row(access_token, task_id)
        updated = task.model_copy(update={"is_complete": bool(is_complete)})
        self._rows[task_id] = updated
        self._schedule_change()
        return updated

    def delete_row(self, access_token: Optional[str], task_id: str) -> None:
        self._owned_row(access_token, task_id)
        del self._rows[task_id]
        self._schedule_change()

    def _owned_row(self, access_token: Optional[str], task_id: str) -> Task:
        user_id = self._user_for_token(access_token)
        task = self._rows.get(str(task_id))
        if task is None or task.user_id != user_id:
            raise RepositoryError(f"Task {task_id} not found", code="NOT_FOUND")
        return task

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------
    def subscribe_changes(self, listener: ChangeListener) -> Subscription:
        return self._change_listeners.add(listener)

    def _schedule_change(self) -> None:
        task = asyncio.get_running_loop().create_task(self._change_listeners.notify())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_idle(self) -> None:
        """Wait until every scheduled change notification has been delivered."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # ------------------------------------------------------------------
    # Per-tab adapters
    # ------------------------------------------------------------------
    def create_session_store(self) -> "InMemorySessionStore":
        return InMemorySessionStore(self)

    def create_task_repository(self, token_provider) -> "InMemoryTaskRepository":
        return InMemoryTaskRepository(self, token_provider)

    def create_change_feed(self) -> "InMemoryChangeFeed":
        return InMemoryChangeFeed(self)


class InMemorySessionStore:
    """SessionStore for one tab against the in-process backend."""

    def __init__(self, backend: InMemoryBackend, session: Optional[Session] = None):
        self._backend = backend
        self._session = session
        self._listeners = ListenerSet("Session listener")

    async def get_current_session(self) -> Optional[Session]:
        if self._session is not None and self._session.is_expired():
            return await self.refresh_session()
        return self._session

    def subscribe(self, on_change: SessionListener) -> Subscription:
        return self._listeners.add(on_change)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        session = self._backend.issue_session(email, password)
        await self._set_session(session)
        return session

    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        self._backend.register(email, password)
        return await self.sign_in_with_password(email, password)

    async def refresh_session(self) -> Optional[Session]:
        if self._session is None:
            return None
        try:
            session = self._backend.refresh(self._session.refresh_token)
        except AuthenticationError as e:
            logger.warning("Session refresh failed, signing out locally: %s", e.message)
            session = None
        await self._set_session(session)
        return session

    async def sign_out(self) -> None:
        if self._session is not None:
            self._backend.revoke(self._session.access_token)
        await self._set_session(None)

    async def _set_session(self, session: Optional[Session]) -> None:
        self._session = session
        await self._listeners.notify(session)


class InMemoryTaskRepository:
    """TaskRepository against the in-process backend."""

    def __init__(self, backend: InMemoryBackend, token_provider):
        self._backend = backend
        self._token_provider = token_provider

    async def list(self) -> List[Task]:
        return self._backend.list_rows(await self._token_provider())

    async def insert(self, title: str) -> None:
        self._backend.insert_row(await self._token_provider(), title)

    async def update(self, task_id: str, is_complete: bool) -> None:
        self._backend.update_row(await self._token_provider(), task_id, is_complete)

    async def delete(self, task_id: str) -> None:
        self._backend.delete_row(await self._token_provider(), task_id)


class InMemoryChangeFeed:
    """ChangeFeed against the in-process backend."""

    def __init__(self, backend: InMemoryBackend):
        self._backend = backend

    def subscribe(self, on_any_change: ChangeListener) -> Subscription:
        return self._backend.subscribe_changes(on_any_change)
