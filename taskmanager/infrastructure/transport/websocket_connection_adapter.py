"""WebSocket connection adapter implementing ViewConnectionProtocol."""

import logging
from typing import Any, Dict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketConnectionAdapter:
    """
    Adapter that wraps FastAPI WebSocket to implement ViewConnectionProtocol.
    This isolates the application layer from FastAPI-specific types.

    Work for a tab can finish after the browser went away (a fetch resolving
    after disconnect); once ``closed`` is set, outgoing messages are dropped.
    """

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.closed = False

    async def send_json(self, data: Dict[str, Any]) -> None:
        """Send JSON data to the client."""
        if self.closed:
            logger.debug("Dropping %s message for closed connection", data.get("type"))
            return
        await self.websocket.send_json(data)

    async def receive_json(self) -> Dict[str, Any]:
        """Receive JSON data from the client."""
        return await self.websocket.receive_json()

    async def accept(self) -> None:
        """Accept the connection."""
        await self.websocket.accept()

    async def close(self) -> None:
        """Close the connection."""
        if self.closed:
            return
        self.closed = True
        await self.websocket.close()

    def mark_closed(self) -> None:
        """Record that the client disconnected."""
        self.closed = True
