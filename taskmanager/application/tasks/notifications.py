"""Toast notifications for task operation outcomes."""

import logging

from taskmanager.interfaces.events import EventPublisher

logger = logging.getLogger(__name__)

TASK_ADDED = "Task added successfully!"
TASK_UPDATED = "Task updated!"
TASK_DELETED = "Task deleted!"

FETCH_FAILED = "Error fetching tasks"
ADD_FAILED = "Error adding task"
UPDATE_FAILED = "Error updating task"
DELETE_FAILED = "Error deleting task"

SIGN_UP_CONFIRMATION = "Check your email for the confirmation link"


class Notifier:
    """Publishes one success or error toast per operation outcome."""

    def __init__(
        self,
        publisher: EventPublisher,
        position: str = "top-right",
        success_duration_ms: int = 2000,
        error_duration_ms: int = 4000,
    ):
        self._publisher = publisher
        self.position = position
        self.success_duration_ms = success_duration_ms
        self.error_duration_ms = error_duration_ms

    async def success(self, message: str) -> None:
        logger.info("Toast (success): %s", message)
        await self._publisher.publish_toast(
            "success", message, self.position, self.success_duration_ms
        )

    async def error(self, message: str) -> None:
        logger.info("Toast (error): %s", message)
        await self._publisher.publish_toast(
            "error", message, self.position, self.error_duration_ms
        )
