"""
Task list view for one signed-in tab.

Owns the tab's cache of task rows and turns user intent into repository
calls. The cache is only ever replaced by a full ``list()`` result: mutations
are never applied locally, the change feed announces them and the view
re-fetches.
"""

import logging
from typing import List, Optional

from taskmanager.application.tasks import notifications
from taskmanager.application.tasks.notifications import Notifier
from taskmanager.application.tasks.rendering import render_task_list
from taskmanager.core.log_sanitizer import sanitize_for_logging
from taskmanager.core.metrics_logger import log_metric
from taskmanager.domain.errors import RepositoryError
from taskmanager.domain.tasks.models import Task, TaskListState
from taskmanager.interfaces.events import EventPublisher
from taskmanager.interfaces.subscriptions import Subscription
from taskmanager.interfaces.tasks import ChangeFeed, TaskRepository

logger = logging.getLogger(__name__)


class TaskListView:
    """
    UNINITIALIZED -> LOADING -> READY, back to LOADING while any fetch is in
    flight. There is no error state: a failed fetch keeps the previous rows.

    The loading indicator covers the initial fetch only; later refreshes
    update the rows in place.
    """

    def __init__(
        self,
        repository: TaskRepository,
        change_feed: ChangeFeed,
        notifier: Notifier,
        publisher: EventPublisher,
        user_email: Optional[str] = None,
    ):
        self._repository = repository
        self._change_feed = change_feed
        self._notifier = notifier
        self._publisher = publisher
        self.user_email = user_email
        self.tasks: List[Task] = []
        self.draft = ""
        self.loading = True
        self.state = TaskListState.UNINITIALIZED
        self.disposed = False
        self._in_flight = 0
        self._subscription: Optional[Subscription] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def mount(self) -> None:
        """Subscribe to change notifications, then issue the initial fetch."""
        if self.state is not TaskListState.UNINITIALIZED or self.disposed:
            return
        self._subscription = self._change_feed.subscribe(self._on_change)
        self.state = TaskListState.LOADING
        await self.render()
        await self.refresh()

    def unmount(self) -> None:
        """Stop listening; results of calls still in flight are dropped."""
        if self.disposed:
            return
        self.disposed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        logger.debug("Task list view for %s unmounted", sanitize_for_logging(self.user_email))

    async def _on_change(self) -> None:
        if self.disposed:
            return
        await self.refresh()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    async def refresh(self) -> None:
        """Re-fetch every row. Whichever fetch finishes last wins."""
        if self.disposed:
            return
        self._in_flight += 1
        self.state = TaskListState.LOADING
        try:
            tasks = await self._repository.list()
        except RepositoryError as e:
            logger.warning("Error fetching tasks: %s", sanitize_for_logging(e.message))
            log_metric("task_list", self.user_email, outcome="error")
            if not self.disposed:
                await self._notifier.error(notifications.FETCH_FAILED)
        else:
            if not self.disposed:
                self.tasks = tasks
                log_metric("task_list", self.user_email, outcome="success", count=len(tasks))
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self.state = TaskListState.READY
            self.loading = False
        await self.render()

    async def add(self, title: Optional[str] = None) -> None:
        """Insert a task from ``title`` (or the current draft).

        Blank input is ignored without a call. The draft is cleared only when
        the insert succeeds.
        """
        text = self.draft if title is None else title
        trimmed = (text or "").strip()
        if not trimmed:
            return
        if text != self.draft:
            self.draft = text
            await self.render()

        try:
            await self._repository.insert(trimmed)
        except RepositoryError as e:
            logger.warning("Error adding task: %s", sanitize_for_logging(e.message))
            log_metric("task_add", self.user_email, outcome="error")
            await self._notifier.error(notifications.ADD_FAILED)
            return

        self.draft = ""
        log_metric("task_add", self.user_email, outcome="success")
        await self._notifier.success(notifications.TASK_ADDED)
        await self.render()

    async def toggle(self, task_id) -> None:
        """Flip the completion flag of a cached task."""
        task = self._find(task_id)
        if task is None:
            logger.warning("Toggle for unknown task %s", sanitize_for_logging(task_id))
            await self._notifier.error(notifications.UPDATE_FAILED)
            return
        try:
            await self._repository.update(task.id, not task.is_complete)
        except RepositoryError as e:
            logger.warning("Error updating task %s: %s", task.id, sanitize_for_logging(e.message))
            log_metric("task_update", self.user_email, outcome="error")
            await self._notifier.error(notifications.UPDATE_FAILED)
            return
        log_metric("task_update", self.user_email, outcome="success")
        await self._notifier.success(notifications.TASK_UPDATED)

    async def delete(self, task_id) -> None:
        try:
            await self._repository.delete(str(task_id))
        except RepositoryError as e:
            logger.warning(
                "Error deleting task %s: %s",
                sanitize_for_logging(task_id), sanitize_for_logging(e.message)
            )
            log_metric("task_delete", self.user_email, outcome="error")
            await self._notifier.error(notifications.DELETE_FAILED)
            return
        log_metric("task_delete", self.user_email, outcome="success")
        await self._notifier.success(notifications.TASK_DELETED)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    async def render(self) -> None:
        if self.disposed:
            return
        await self._publisher.publish_view(
            "tasks",
            **render_task_list(self.tasks, self.loading, self.draft, self.user_email),
        )

    def _find(self, task_id) -> Optional[Task]:
        task_id = str(task_id)
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None
