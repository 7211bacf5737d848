"""Change feed adapter over the backend's realtime websocket.

Speaks the Phoenix channel protocol used by the realtime service: one
`phx_join` per channel carrying the `postgres_changes` bindings, a
heartbeat on the `phoenix` topic, and `postgres_changes` messages for
every matching row change.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

import aiohttp

from src.core.errors import FetchError
from src.ports.data_store import ChangeEvent, ChangeFeedPort, Subscription
from src.ports.identity import UserIdentity

__all__ = [
    "CHANNEL_TOPIC",
    "RealtimeChangeFeed",
    "RealtimeSubscription",
    "build_join_message",
    "parse_change",
    "realtime_url",
]

logger = logging.getLogger(__name__)

CHANNEL_TOPIC = "realtime:fitness_data_changes"
HEARTBEAT_SEC = 30.0
PROTOCOL_VERSION = "1.0.0"


def realtime_url(base_url: str, api_key: str) -> str:
    """Return the websocket URL for a project base URL."""
    base = base_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://") :]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://") :]
    return f"{base}/realtime/v1/websocket?apikey={api_key}&vsn={PROTOCOL_VERSION}"


def build_join_message(identity: UserIdentity, tables: Sequence[str], ref: str) -> dict[str, Any]:
    """Build the channel join message watching `tables` for one user."""
    return {
        "topic": CHANNEL_TOPIC,
        "event": "phx_join",
        "payload": {
            "config": {
                "broadcast": {"self": False},
                "presence": {"key": ""},
                "postgres_changes": [
                    {
                        "event": "*",
                        "schema": "public",
                        "table": table,
                        "filter": f"user_id=eq.{identity.user_id}",
                    }
                    for table in tables
                ],
            },
            "access_token": identity.access_token,
        },
        "ref": ref,
    }


def parse_change(message: dict[str, Any]) -> ChangeEvent | None:
    """Turn a `postgres_changes` message into a ChangeEvent.

    Returns:
        The event, or None for any other message.
    """
    if message.get("event") != "postgres_changes":
        return None
    data = (message.get("payload") or {}).get("data") or {}
    table = data.get("table")
    if not table:
        return None
    return ChangeEvent(table=table, change_type=str(data.get("type", "*")))


class RealtimeSubscription(Subscription):
    """Open websocket plus its reader and heartbeat tasks."""

    def __init__(
        self,
        ws: aiohttp.ClientWebSocketResponse,
        on_change: Callable[[ChangeEvent], None],
        *,
        heartbeat_sec: float = HEARTBEAT_SEC,
    ) -> None:
        self._ws = ws
        self._on_change = on_change
        self._heartbeat_sec = heartbeat_sec
        self._refs = itertools.count(2)
        self._closed = False
        loop = asyncio.get_running_loop()
        self._reader = loop.create_task(self._read_loop())
        self._heartbeat = loop.create_task(self._heartbeat_loop())

    @property
    def closed(self) -> bool:
        return self._closed

    def dispatch(self, raw: str) -> None:
        """Handle one text frame from the server."""
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring malformed realtime frame: {raw[:200]!r}")
            return

        if message.get("event") == "phx_reply":
            status = (message.get("payload") or {}).get("status")
            if status != "ok":
                logger.warning(f"Realtime server rejected request: {message.get('payload')}")
            return

        event = parse_change(message)
        if event is not None:
            self._on_change(event)

    async def _read_loop(self) -> None:
        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    self.dispatch(msg.data)
                except Exception as e:  # noqa: BLE001
                    logger.error(f"Change handler failed: {e}", exc_info=True)
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.warning(f"Realtime connection error: {self._ws.exception()}")
                break
        if not self._closed:
            logger.warning("Realtime connection closed by server, continuing with polling only")

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_sec)
            try:
                await self._ws.send_json(
                    {"topic": "phoenix", "event": "heartbeat", "payload": {}, "ref": str(next(self._refs))}
                )
            except (aiohttp.ClientError, ConnectionResetError) as e:
                logger.warning(f"Realtime heartbeat failed: {e}")
                return

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for task in (self._reader, self._heartbeat):
            task.cancel()
        await asyncio.gather(self._reader, self._heartbeat, return_exceptions=True)
        if not self._ws.closed:
            try:
                await self._ws.send_json(
                    {"topic": CHANNEL_TOPIC, "event": "phx_leave", "payload": {}, "ref": str(next(self._refs))}
                )
            except (aiohttp.ClientError, ConnectionResetError) as e:
                logger.debug(f"Could not send phx_leave: {e}")
            await self._ws.close()
        logger.info("Realtime subscription released")


class RealtimeChangeFeed(ChangeFeedPort):
    """Subscribes to row changes through the realtime websocket."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        api_key: str,
        *,
        heartbeat_sec: float = HEARTBEAT_SEC,
    ) -> None:
        """Initialize the change feed.

        Args:
            session: Open aiohttp session (shared with the HTTP client).
            base_url: Project URL.
            api_key: Public (anon) API key.
            heartbeat_sec: Seconds between heartbeats.
        """
        self._session = session
        self._url = realtime_url(base_url, api_key)
        self._heartbeat_sec = heartbeat_sec

    async def subscribe(
        self,
        identity: UserIdentity,
        tables: Sequence[str],
        on_change: Callable[[ChangeEvent], None],
    ) -> RealtimeSubscription:
        """Open the websocket and join the change channel.

        Raises:
            FetchError: If the websocket cannot be opened.
        """
        try:
            ws = await self._session.ws_connect(self._url)
            await ws.send_json(build_join_message(identity, tables, ref="1"))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"Realtime connection failed: {e!r}") from e

        logger.info(f"Watching {', '.join(tables)} for changes")
        return RealtimeSubscription(ws, on_change, heartbeat_sec=self._heartbeat_sec)
