from .models import Task, TaskListState

__all__ = ["Task", "TaskListState"]
