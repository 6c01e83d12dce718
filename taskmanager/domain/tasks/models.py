"""Domain models for tasks."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class TaskListState(str, Enum):
    """Lifecycle of a task list view."""
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


class Task(BaseModel):
    """A row of the tasks table.

    The id is assigned by the backend and never changes. ``user_id`` is set by
    row-level policy on insert and is only ever read here.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str
    is_complete: bool = False
    created_at: datetime
    user_id: Optional[str] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        """Backends use bigint or uuid keys; both are carried as strings."""
        if v is None:
            return v
        return str(v)
