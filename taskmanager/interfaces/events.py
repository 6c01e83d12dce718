"""Event publisher interface for transport-agnostic UI updates."""

from typing import Any, Dict, Protocol


class EventPublisher(Protocol):
    """
    Protocol for publishing view state and notifications to a tab.

    Keeps the application layer decoupled from the WebSocket transport.
    """

    async def publish_view(self, view: str, **state: Any) -> None:
        """
        Publish the full state of the view the tab should render.

        Args:
            view: "sign_in" or "tasks"
            **state: View-specific state (loading flag, rows, draft, user)
        """
        ...

    async def publish_toast(
        self,
        level: str,
        message: str,
        position: str,
        duration_ms: int,
    ) -> None:
        """
        Publish a transient notification.

        Args:
            level: "success" or "error"
            message: Text to show
            position: Screen corner, e.g. "top-right"
            duration_ms: Auto-dismiss delay
        """
        ...

    async def send_json(self, data: Dict[str, Any]) -> None:
        """Send a raw JSON message."""
        ...
