"""In-process backend used when USE_MOCK_BACKEND is set."""

from .in_memory_backend import (
    InMemoryBackend,
    InMemoryChangeFeed,
    InMemorySessionStore,
    InMemoryTaskRepository,
)

__all__ = [
    "InMemoryBackend",
    "InMemoryChangeFeed",
    "InMemorySessionStore",
    "InMemoryTaskRepository",
]
