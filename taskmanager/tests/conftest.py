import asyncio
import json
import os
import tempfile
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# Settings are read on first use; point them at the in-memory backend and a
# scratch log directory before any taskmanager module builds them.
os.environ.setdefault("USE_MOCK_BACKEND", "true")
os.environ.setdefault("APP_LOG_DIR", tempfile.mkdtemp(prefix="taskmanager-logs-"))

import pytest  # noqa: E402

from taskmanager.application.tasks.notifications import Notifier  # noqa: E402
from taskmanager.domain.tasks.models import Task  # noqa: E402
from taskmanager.infrastructure.events.websocket_publisher import WebSocketEventPublisher  # noqa: E402
from taskmanager.infrastructure.memory import InMemoryBackend  # noqa: E402


class RecordingConnection:
    """ViewConnectionProtocol double that keeps every outgoing message."""

    def __init__(self):
        self.sent = []
        self.closed = False

    async def send_json(self, data):
        self.sent.append(data)

    async def receive_json(self):
        raise NotImplementedError

    async def accept(self):
        pass

    async def close(self):
        self.closed = True

    def toasts(self):
        return [m["message"] for m in self.sent if m["type"] == "toast"]

    def views(self, name=None):
        return [m for m in self.sent if m["type"] == "view" and (name is None or m["view"] == name)]

    def last_view(self):
        views = self.views()
        return views[-1] if views else None


class YieldingConnection(RecordingConnection):
    """Gives up the event loop on every send, as a real socket write does."""

    async def send_json(self, data):
        await asyncio.sleep(0)
        self.sent.append(data)


class FakeSocket:
    """Realtime socket double: records sent frames, yields pushed ones."""

    def __init__(self):
        self.sent = []
        self.incoming = asyncio.Queue()

    async def send(self, data):
        self.sent.append(json.loads(data))

    def push(self, message):
        self.incoming.put_nowait(json.dumps(message))

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.incoming.get()
        if item is None:
            raise StopAsyncIteration
        return item

    def events(self):
        return [m["event"] for m in self.sent]


def fake_connect(sockets, failures=0):
    """connect() double: fails ``failures`` times, then hands out ``sockets`` in order."""
    state = {"failures": failures, "urls": []}

    @asynccontextmanager
    async def connect(url):
        state["urls"].append(url)
        if state["failures"]:
            state["failures"] -= 1
            raise OSError("connection refused")
        yield sockets.pop(0)

    connect.state = state
    return connect


async def until(predicate, attempts=200):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")



def make_task(task_id="1", title="Task", is_complete=False, minutes_ago=0, user_id="user-1"):
    return Task(
        id=task_id,
        title=title,
        is_complete=is_complete,
        created_at=datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago),
        user_id=user_id,
    )


@pytest.fixture
def connection():
    return RecordingConnection()


@pytest.fixture
def publisher(connection):
    return WebSocketEventPublisher(connection)


@pytest.fixture
def notifier(publisher):
    return Notifier(publisher)


@pytest.fixture
def backend():
    return InMemoryBackend()
