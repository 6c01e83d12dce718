"""Cancellable subscription handle shared by session and change listeners."""

import itertools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class Subscription:
    """
    Handle returned by every ``subscribe`` call.

    ``unsubscribe()`` is idempotent. Once it has returned, ``active`` is False
    and the publisher must not invoke the listener again.
    """

    def __init__(self, on_unsubscribe: Optional[Callable[[], None]] = None):
        self._on_unsubscribe = on_unsubscribe
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        callback, self._on_unsubscribe = self._on_unsubscribe, None
        if callback is not None:
            callback()


class ListenerSet:
    """
    Listeners keyed by subscription, notified in registration order.

    A listener removed while a notification is being delivered is skipped for
    the rest of that delivery. A failing listener is logged and does not stop
    delivery to the others.
    """

    def __init__(self, name: str = "listener"):
        self._name = name
        self._listeners: Dict[int, Callable[..., Awaitable[None]]] = {}
        self._ids = itertools.count(1)

    def add(self, listener: Callable[..., Awaitable[None]]) -> Subscription:
        key = next(self._ids)
        self._listeners[key] = listener
        return Subscription(on_unsubscribe=lambda: self._listeners.pop(key, None))

    async def notify(self, *args: Any) -> None:
        for key, listener in list(self._listeners.items()):
            if key not in self._listeners:
                continue
            try:
                await listener(*args)
            except Exception as e:
                logger.error(f"{self._name} failed: {e}", exc_info=True)

    def __len__(self) -> int:
        return len(self._listeners)
