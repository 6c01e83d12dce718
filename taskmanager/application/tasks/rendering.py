"""Render task list state into the JSON the browser client draws."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from taskmanager.domain.tasks.models import Task

COMPLETED_TITLE_CLASS = "line-through text-gray-500"
OPEN_TITLE_CLASS = "text-gray-900"


def format_created_label(created_at: datetime) -> str:
    """Creation date as shown next to each task, e.g. ``Jan 5, 2024``."""
    return f"{created_at:%b} {created_at.day}, {created_at.year}"


def render_task(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "is_complete": task.is_complete,
        "created_at": task.created_at.isoformat(),
        "created_label": format_created_label(task.created_at),
        "title_class": COMPLETED_TITLE_CLASS if task.is_complete else OPEN_TITLE_CLASS,
    }


def render_task_list(
    tasks: List[Task],
    loading: bool,
    draft: str = "",
    user_email: Optional[str] = None,
) -> Dict[str, Any]:
    """
    State of the task view.

    Rows keep the order they were fetched in (newest first); completing a task
    never moves it.
    """
    return {
        "loading": loading,
        "draft": draft,
        "tasks": [render_task(task) for task in tasks],
        "user": {"email": user_email},
    }
