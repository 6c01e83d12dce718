"""WebSocket-based event publisher implementation."""

import logging
from typing import Any, Dict, Optional

from taskmanager.interfaces.transport import ViewConnectionProtocol

logger = logging.getLogger(__name__)


class WebSocketEventPublisher:
    """
    WebSocket implementation of EventPublisher.

    Publishes rendered view state and toast notifications to one connected
    browser tab.
    """

    def __init__(self, connection: Optional[ViewConnectionProtocol] = None):
        """
        Initialize WebSocket event publisher.

        Args:
            connection: WebSocket connection for sending messages
        """
        self.connection = connection

    async def publish_view(self, view: str, **state: Any) -> None:
        """Publish the full state of the current view."""
        if self.connection:
            await self.connection.send_json({
                "type": "view",
                "view": view,
                **state,
            })

    async def publish_toast(
        self,
        level: str,
        message: str,
        position: str,
        duration_ms: int,
    ) -> None:
        """Publish a transient toast notification."""
        if self.connection:
            await self.connection.send_json({
                "type": "toast",
                "level": level,
                "message": message,
                "position": position,
                "duration_ms": duration_ms,
            })

    async def send_json(self, data: Dict[str, Any]) -> None:
        """Send raw JSON message."""
        if self.connection:
            await self.connection.send_json(data)
