"""Supabase Realtime change feed.

Speaks the Phoenix channel protocol used by Supabase Realtime:

1. Open ``wss://<project>/realtime/v1/websocket?apikey=<key>&vsn=1.0.0``
2. ``phx_join`` the ``realtime:<table>`` topic with a ``postgres_changes``
   filter for every event on the table and the user's access token
3. Send ``heartbeat`` on the ``phoenix`` topic every few seconds
4. Every ``postgres_changes`` message means "the table changed"
5. ``phx_leave`` on teardown

Each subscription owns one socket and reconnects after a pause when it drops,
until it is unsubscribed.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set
from urllib.parse import urlencode, urlsplit, urlunsplit

from websockets.asyncio.client import connect as websocket_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from taskmanager.core.log_sanitizer import redact_url, sanitize_for_logging
from taskmanager.interfaces.subscriptions import Subscription
from taskmanager.interfaces.tasks import ChangeListener

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]

PROTOCOL_VERSION = "1.0.0"


class ChannelError(Exception):
    """Raised when the server closes or errors the joined channel."""
    pass


def build_socket_url(supabase_url: str, anon_key: str) -> str:
    """Realtime endpoint for a project URL (http -> ws, https -> wss)."""
    parts = urlsplit(supabase_url.rstrip("/"))
    scheme = "wss" if parts.scheme == "https" else "ws"
    query = urlencode({"apikey": anon_key, "vsn": PROTOCOL_VERSION})
    return urlunsplit((scheme, parts.netloc, f"{parts.path}/realtime/v1/websocket", query, ""))


class RealtimeChannel:
    """One joined channel on its own socket, delivering change notifications."""

    def __init__(
        self,
        socket_url: str,
        topic: str,
        postgres_changes: Dict[str, str],
        token_provider: TokenProvider,
        listener: ChangeListener,
        heartbeat_interval: float = 25.0,
        reconnect_interval: float = 5.0,
        connect: Callable[..., Any] = websocket_connect,
    ):
        self.socket_url = socket_url
        self.topic = topic
        self._postgres_changes = postgres_changes
        self._token_provider = token_provider
        self._listener = listener
        self._heartbeat_interval = heartbeat_interval
        self._reconnect_interval = reconnect_interval
        self._connect = connect
        self._ref = 0
        self._join_ref: Optional[str] = None
        self._token: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self._detached: Set[asyncio.Task] = set()
        self.closed = False
        self.joined = asyncio.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name=f"realtime:{self.topic}")

    def close(self) -> None:
        """Stop delivery immediately; the socket is torn down in the background."""
        if self.closed:
            return
        self.closed = True
        if self._task is not None and not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()
        logger.debug("Realtime channel %s closed", self.topic)

    async def _outside_channel(self, callback: Awaitable[Any]) -> Any:
        """
        Await a token provider or listener call in its own task.

        Those calls can end in a sign-out that closes this channel; cancelling
        the channel must not cancel the sign-out running through them.
        """
        task = asyncio.ensure_future(callback)
        self._detached.add(task)
        task.add_done_callback(self._detached.discard)
        return await asyncio.shield(task)

    async def _run(self) -> None:
        while not self.closed:
            try:
                async with self._connect(self.socket_url) as ws:
                    await self._serve(ws)
            except (OSError, WebSocketException, ChannelError) as e:
                self.joined.clear()
                logger.warning(
                    "Realtime connection to %s lost: %s",
                    redact_url(self.socket_url), sanitize_for_logging(e)
                )
            if self.closed:
                break
            await asyncio.sleep(self._reconnect_interval)

    async def _serve(self, ws) -> None:
        self._token = await self._outside_channel(self._token_provider())
        await ws.send(json.dumps(self.join_message(self._token)))
        heartbeat = asyncio.create_task(self._heartbeat(ws))
        try:
            async for raw in ws:
                await self.handle_message(raw)
        finally:
            heartbeat.cancel()
            if self.closed:
                await self._leave(ws)

    async def _leave(self, ws) -> None:
        try:
            await ws.send(json.dumps(self._message(self.topic, "phx_leave", {})))
        except (OSError, WebSocketException) as e:
            logger.debug("Could not send phx_leave for %s: %s", self.topic, e)

    async def _heartbeat(self, ws) -> None:
        try:
            while True:
                await asyncio.sleep(self._heartbeat_interval)
                await ws.send(json.dumps(self._message("phoenix", "heartbeat", {})))
                token = await self._outside_channel(self._token_provider())
                if token and token != self._token:
                    # Refreshed session; the server drops channels whose token expires
                    self._token = token
                    await ws.send(json.dumps(self._message(self.topic, "access_token", {"access_token": token})))
        except ConnectionClosed:
            return

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------
    def _next_ref(self) -> str:
        self._ref += 1
        return str(self._ref)

    def _message(self, topic: str, event: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "topic": topic,
            "event": event,
            "payload": payload,
            "ref": self._next_ref(),
            "join_ref": self._join_ref,
        }

    def join_message(self, access_token: Optional[str]) -> Dict[str, Any]:
        ref = self._next_ref()
        self._join_ref = ref
        payload: Dict[str, Any] = {
            "config": {
                "broadcast": {"ack": False, "self": False},
                "presence": {"key": ""},
                "postgres_changes": [self._postgres_changes],
            },
        }
        if access_token:
            payload["access_token"] = access_token
        return {"topic": self.topic, "event": "phx_join", "payload": payload, "ref": ref, "join_ref": ref}

    async def handle_message(self, raw: Any) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed realtime frame")
            return
        if not isinstance(message, dict) or message.get("topic") != self.topic:
            return

        event = message.get("event")
        payload = message.get("payload") or {}

        if event == "postgres_changes":
            if self.closed:
                return
            logger.debug("Change notification on %s", self.topic)
            try:
                await self._outside_channel(self._listener())
            except Exception as e:
                logger.error(f"Change listener failed: {e}", exc_info=True)
        elif event == "phx_reply":
            if message.get("ref") != self._join_ref:
                return
            status = payload.get("status")
            if status == "ok":
                self.joined.set()
                logger.info("Joined realtime channel %s", self.topic)
            else:
                logger.warning(
                    "Realtime join on %s rejected: %s",
                    self.topic, sanitize_for_logging(payload.get("response"))
                )
        elif event in ("phx_error", "phx_close"):
            raise ChannelError(f"Channel {self.topic} received {event}")
        elif event == "system" and payload.get("status") == "error":
            logger.warning("Realtime system error on %s: %s", self.topic, sanitize_for_logging(payload.get("message")))


class RealtimeChangeFeed:
    """ChangeFeed implementation over Supabase Realtime."""

    def __init__(
        self,
        supabase_url: str,
        anon_key: str,
        token_provider: TokenProvider,
        table: str = "tasks",
        schema: str = "public",
        heartbeat_interval: float = 25.0,
        reconnect_interval: float = 5.0,
        connect: Callable[..., Any] = websocket_connect,
    ):
        self._socket_url = build_socket_url(supabase_url, anon_key)
        self._topic = f"realtime:{table}"
        self._postgres_changes = {"event": "*", "schema": schema, "table": table}
        self._token_provider = token_provider
        self._heartbeat_interval = heartbeat_interval
        self._reconnect_interval = reconnect_interval
        self._connect = connect

    def create_channel(self, on_any_change: ChangeListener) -> RealtimeChannel:
        return RealtimeChannel(
            socket_url=self._socket_url,
            topic=self._topic,
            postgres_changes=dict(self._postgres_changes),
            token_provider=self._token_provider,
            listener=on_any_change,
            heartbeat_interval=self._heartbeat_interval,
            reconnect_interval=self._reconnect_interval,
            connect=self._connect,
        )

    def subscribe(self, on_any_change: ChangeListener) -> Subscription:
        channel = self.create_channel(on_any_change)
        channel.start()
        return Subscription(on_unsubscribe=channel.close)
