"""Task list view and its notification surface."""

from .notifications import Notifier
from .task_list_view import TaskListView

__all__ = ["Notifier", "TaskListView"]
