"""Tests for the Task model."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from taskmanager.domain.tasks.models import Task, TaskListState


def test_validates_postgrest_row():
    task = Task.model_validate({
        "id": 42,
        "title": "Buy milk",
        "is_complete": False,
        "created_at": "2024-01-05T12:00:00+00:00",
        "user_id": "6b1c9f5e-0000-4000-8000-000000000000",
        "extra_column": "ignored",
    })

    assert task.id == "42"
    assert task.title == "Buy milk"
    assert task.created_at == datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc)


def test_is_complete_defaults_to_false():
    task = Task(id="1", title="x", created_at=datetime.now(timezone.utc))
    assert task.is_complete is False
    assert task.user_id is None


def test_tasks_are_immutable():
    task = Task(id="1", title="x", created_at=datetime.now(timezone.utc))
    with pytest.raises(PydanticValidationError):
        task.is_complete = True


def test_missing_created_at_is_rejected():
    with pytest.raises(PydanticValidationError):
        Task.model_validate({"id": 1, "title": "x"})


def test_state_values():
    assert [s.value for s in TaskListState] == ["uninitialized", "loading", "ready"]
