"""Task repository and change feed interfaces."""

from typing import Awaitable, Callable, List, Protocol

from taskmanager.domain.tasks.models import Task
from taskmanager.interfaces.subscriptions import Subscription

ChangeListener = Callable[[], Awaitable[None]]


class TaskRepository(Protocol):
    """
    Port for the remote tasks table.

    Every method raises RepositoryError on any failure (network,
    authorization, validation); callers never see transport exceptions.
    Row ownership is enforced by the backend, never here.
    """

    async def list(self) -> List[Task]:
        """Return all visible tasks, newest first."""
        ...

    async def insert(self, title: str) -> None:
        """Create a task with is_complete = False."""
        ...

    async def update(self, task_id: str, is_complete: bool) -> None:
        """Set the completion flag of one task."""
        ...

    async def delete(self, task_id: str) -> None:
        """Remove one task."""
        ...


class ChangeFeed(Protocol):
    """Port for the "tasks table changed" push channel."""

    def subscribe(self, on_any_change: ChangeListener) -> Subscription:
        """
        Start delivering payload-free change notifications.

        Delivery is at-least-once and may coalesce; the only promise is that
        a refresh is warranted.
        """
        ...
