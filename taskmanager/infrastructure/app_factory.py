"""Application factory for dependency injection and wiring."""

import logging
from typing import Optional

from taskmanager.application.shell import Shell
from taskmanager.application.tasks.notifications import Notifier
from taskmanager.application.tasks.task_list_view import TaskListView
from taskmanager.domain.errors import ConfigurationError
from taskmanager.domain.sessions.models import Session
from taskmanager.infrastructure.events.websocket_publisher import WebSocketEventPublisher
from taskmanager.infrastructure.memory import InMemoryBackend
from taskmanager.infrastructure.supabase import (
    GoTrueSessionStore,
    PostgrestTaskRepository,
    RealtimeChangeFeed,
)
from taskmanager.interfaces.events import EventPublisher
from taskmanager.interfaces.sessions import SessionStore
from taskmanager.interfaces.tasks import ChangeFeed, TaskRepository
from taskmanager.interfaces.transport import ViewConnectionProtocol
from taskmanager.modules.config import ConfigManager, config_manager

logger = logging.getLogger(__name__)


class AppFactory:
    """Application factory that wires dependencies (simple in-memory DI)."""

    def __init__(self, config: Optional[ConfigManager] = None) -> None:
        self.config_manager = config or config_manager
        settings = self.config_manager.app_settings

        # Backend selection
        if settings.use_mock_backend:
            logger.info("Using InMemoryBackend (in-process, no Supabase project required)")
            self.memory_backend: Optional[InMemoryBackend] = InMemoryBackend()
        else:
            logger.info("Using Supabase backend at %s", settings.supabase_url or "<unset>")
            self.memory_backend = None

        logger.info("AppFactory initialized")

    def _require_supabase(self) -> None:
        settings = self.config_manager.app_settings
        if not settings.supabase_configured:
            raise ConfigurationError(
                "Supabase is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY "
                "(or USE_MOCK_BACKEND=true).",
                code="SUPABASE_NOT_CONFIGURED",
            )

    def create_session_store(self) -> SessionStore:
        if self.memory_backend is not None:
            return self.memory_backend.create_session_store()
        self._require_supabase()
        settings = self.config_manager.app_settings
        return GoTrueSessionStore(
            supabase_url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            timeout=settings.supabase_request_timeout,
        )

    def create_task_repository(self, token_provider) -> TaskRepository:
        if self.memory_backend is not None:
            return self.memory_backend.create_task_repository(token_provider)
        self._require_supabase()
        settings = self.config_manager.app_settings
        return PostgrestTaskRepository(
            supabase_url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            token_provider=token_provider,
            table=settings.tasks_table,
            schema=settings.supabase_schema,
            timeout=settings.supabase_request_timeout,
        )

    def create_change_feed(self, token_provider) -> ChangeFeed:
        if self.memory_backend is not None:
            return self.memory_backend.create_change_feed()
        self._require_supabase()
        settings = self.config_manager.app_settings
        return RealtimeChangeFeed(
            supabase_url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            token_provider=token_provider,
            table=settings.tasks_table,
            schema=settings.supabase_schema,
            heartbeat_interval=settings.realtime_heartbeat_interval,
            reconnect_interval=settings.realtime_reconnect_interval,
        )

    def create_notifier(self, publisher: EventPublisher) -> Notifier:
        settings = self.config_manager.app_settings
        return Notifier(
            publisher,
            position=settings.toast_position,
            success_duration_ms=settings.toast_success_duration_ms,
            error_duration_ms=settings.toast_error_duration_ms,
        )

    def create_task_list_view(
        self,
        session_store: SessionStore,
        notifier: Notifier,
        publisher: EventPublisher,
        session: Optional[Session] = None,
    ) -> TaskListView:
        async def token_provider() -> Optional[str]:
            current = await session_store.get_current_session()
            return current.access_token if current else None

        return TaskListView(
            repository=self.create_task_repository(token_provider),
            change_feed=self.create_change_feed(token_provider),
            notifier=notifier,
            publisher=publisher,
            user_email=session.user_email if session else None,
        )

    def create_shell(self, connection: Optional[ViewConnectionProtocol] = None) -> Shell:
        """Build the per-tab object graph for one browser connection."""
        publisher = WebSocketEventPublisher(connection)
        notifier = self.create_notifier(publisher)
        session_store = self.create_session_store()
        return Shell(
            session_store=session_store,
            publisher=publisher,
            notifier=notifier,
            view_factory=lambda session: self.create_task_list_view(
                session_store, notifier, publisher, session
            ),
            app_name=self.config_manager.app_settings.app_name,
        )

    # Accessors
    def get_config_manager(self) -> ConfigManager:  # noqa: D401
        return self.config_manager

    def get_memory_backend(self) -> Optional[InMemoryBackend]:  # noqa: D401
        return self.memory_backend


# Global instance used by the web entry point
app_factory = AppFactory()
