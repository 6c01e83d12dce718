"""Interfaces layer - protocols and contracts."""

from .events import EventPublisher
from .sessions import SessionListener, SessionStore
from .subscriptions import ListenerSet, Subscription
from .tasks import ChangeFeed, TaskRepository
from .transport import ViewConnectionProtocol

__all__ = [
    "ChangeFeed",
    "EventPublisher",
    "SessionListener",
    "SessionStore",
    "ListenerSet",
    "Subscription",
    "TaskRepository",
    "ViewConnectionProtocol",
]
