"""Adapters for the hosted Supabase backend (auth, REST rows, realtime)."""

from .auth_client import GoTrueSessionStore
from .realtime_client import RealtimeChangeFeed
from .rest_client import PostgrestTaskRepository

__all__ = [
    "GoTrueSessionStore",
    "PostgrestTaskRepository",
    "RealtimeChangeFeed",
]
