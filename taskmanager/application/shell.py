"""
Shell for one browser tab.

Decides between the sign-in view and the task view from session presence,
mounts and unmounts the task list view, and dispatches client messages.
"""

import logging
from typing import Any, Callable, Dict, Optional

from taskmanager.application.tasks import notifications
from taskmanager.application.tasks.notifications import Notifier
from taskmanager.application.tasks.task_list_view import TaskListView
from taskmanager.core.log_sanitizer import sanitize_for_logging
from taskmanager.core.metrics_logger import log_metric
from taskmanager.domain.errors import AuthenticationError, ValidationError
from taskmanager.domain.sessions.models import Session
from taskmanager.interfaces.events import EventPublisher
from taskmanager.interfaces.sessions import SessionStore
from taskmanager.interfaces.subscriptions import Subscription

logger = logging.getLogger(__name__)

ViewFactory = Callable[[Session], TaskListView]

TASK_MESSAGES = ("add_task", "toggle_task", "delete_task", "refresh")


class Shell:
    """Per-tab root: session-driven view switching plus sign-out."""

    def __init__(
        self,
        session_store: SessionStore,
        publisher: EventPublisher,
        notifier: Notifier,
        view_factory: ViewFactory,
        app_name: str = "Task Manager",
    ):
        self.session_store = session_store
        self._publisher = publisher
        self._notifier = notifier
        self._view_factory = view_factory
        self.app_name = app_name
        self.session: Optional[Session] = None
        self.view: Optional[TaskListView] = None
        self.current_view: Optional[str] = None
        self.detached = False
        self._subscription: Optional[Subscription] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def attach(self) -> None:
        """Subscribe to session changes, then resolve the current session."""
        self._subscription = self.session_store.subscribe(self._set_session)
        session = await self.session_store.get_current_session()
        await self._set_session(session)

    def detach(self) -> None:
        """Tab closed: stop listening and drop the task view."""
        if self.detached:
            return
        self.detached = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._unmount_view()

    async def _set_session(self, session: Optional[Session]) -> None:
        """Apply a session change. Safe to call repeatedly with the same value."""
        if self.detached:
            return
        previous, self.session = self.session, session

        if session is None:
            self._unmount_view()
            if self.current_view != "sign_in":
                self.current_view = "sign_in"
                await self._publisher.publish_view("sign_in", app_name=self.app_name)
            return

        if self.view is not None and not self.view.disposed:
            if session.same_user(previous):
                # Token refresh; the repository reads credentials from the store
                return
            self._unmount_view()

        view = self._view_factory(session)
        self.view = view
        self.current_view = "tasks"
        logger.info("Mounting task view for %s", sanitize_for_logging(session.user_email))
        await view.mount()

    def _unmount_view(self) -> None:
        if self.view is not None:
            self.view.unmount()
            self.view = None

    # ------------------------------------------------------------------
    # Client messages
    # ------------------------------------------------------------------
    async def handle_message(self, data: Dict[str, Any]) -> None:
        """
        Dispatch one client message.

        Raises:
            ValidationError: Unknown message type or malformed fields.
        """
        message_type = data.get("type")

        if message_type == "sign_in":
            email, password = self._credentials(data)
            await self.sign_in(email, password)
        elif message_type == "sign_up":
            email, password = self._credentials(data)
            await self.sign_up(email, password)
        elif message_type == "sign_out":
            await self.sign_out()
        elif message_type in TASK_MESSAGES:
            view = self.view
            if view is None:
                logger.warning(
                    "Ignoring %s while signed out", sanitize_for_logging(message_type)
                )
                return
            if message_type == "add_task":
                await view.add(self._text(data, "title"))
            elif message_type == "toggle_task":
                await view.toggle(self._task_id(data))
            elif message_type == "delete_task":
                await view.delete(self._task_id(data))
            else:
                await view.refresh()
        else:
            raise ValidationError(
                f"Unknown message type: {sanitize_for_logging(message_type)}",
                code="UNKNOWN_MESSAGE",
            )

    async def sign_in(self, email: str, password: str) -> None:
        try:
            await self.session_store.sign_in_with_password(email, password)
        except AuthenticationError as e:
            logger.warning("Sign-in failed for %s: %s", sanitize_for_logging(email), e.code)
            log_metric("sign_in", email, outcome="error")
            await self._notifier.error(e.message)
            return
        log_metric("sign_in", email, outcome="success")

    async def sign_up(self, email: str, password: str) -> None:
        try:
            session = await self.session_store.sign_up(email, password)
        except AuthenticationError as e:
            logger.warning("Sign-up failed for %s: %s", sanitize_for_logging(email), e.code)
            log_metric("sign_up", email, outcome="error")
            await self._notifier.error(e.message)
            return
        log_metric("sign_up", email, outcome="success")
        if session is None:
            await self._notifier.success(notifications.SIGN_UP_CONFIRMATION)

    async def sign_out(self) -> None:
        user_email = self.session.user_email if self.session else None
        await self.session_store.sign_out()
        log_metric("sign_out", user_email)

    @staticmethod
    def _text(data: Dict[str, Any], key: str) -> str:
        value = data.get(key, "")
        if not isinstance(value, str):
            raise ValidationError(f"Field '{key}' must be a string", code="INVALID_FIELD")
        return value

    def _credentials(self, data: Dict[str, Any]):
        email = self._text(data, "email").strip()
        password = self._text(data, "password")
        if not email or not password:
            raise ValidationError("Email and password are required", code="MISSING_CREDENTIALS")
        return email, password

    @staticmethod
    def _task_id(data: Dict[str, Any]) -> str:
        task_id = data.get("id")
        if task_id is None or isinstance(task_id, bool) or not isinstance(task_id, (str, int)):
            raise ValidationError("Field 'id' is required", code="INVALID_FIELD")
        return str(task_id)
