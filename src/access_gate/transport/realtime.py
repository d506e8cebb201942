"""
Realtime change feed over Socket.IO.

Connection: {base_url}/realtime/socket.io/ with auth={apikey, token}.
After `realtime:ready` the client emits `realtime:subscribe {table}` for every
table with at least one subscription. The server pushes
`postgres_changes {table, eventType}` on insert/update/delete; the payload is
only used to route the notice to the right subscribers.
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from access_gate.errors import ConnectionError

logger = logging.getLogger(__name__)

SOCKETIO_PATH = "/realtime/socket.io/"
CHANGE_EVENT = "postgres_changes"


class ChangeNotice:
    __slots__ = ("table", "event_type")

    def __init__(self, table: str, event_type: Optional[str] = None):
        self.table = table
        self.event_type = event_type

    def __repr__(self) -> str:
        return f"ChangeNotice(table={self.table!r}, event_type={self.event_type!r})"


ChangeHandler = Callable[[ChangeNotice], None]


class Subscription:
    """One listener on one table. close() is idempotent."""

    def __init__(self, feed: "ChangeFeed", table: str, handler: ChangeHandler):
        self._feed = feed
        self.table = table
        self.handler = handler
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._feed._release(self)


class ChangeSource(Protocol):
    async def subscribe(self, table: str, handler: ChangeHandler) -> Any:
        """Return an object with an async close() that releases the listener."""
        ...


class ChangeFeed:
    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        token: Optional[str] = None,
        transports: Optional[list[str]] = None,
        ready_timeout: float = 15.0,
    ):
        self._base_url = base_url
        self._api_key = api_key
        self._token = token
        self._transports = transports or ["websocket"]
        self._ready_timeout = ready_timeout
        self._sio: Optional[socketio.AsyncClient] = None
        self._connected = False
        self._subscriptions: list[Subscription] = []
        self._connect_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._connected and self._sio is not None and self._sio.connected

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def _tables(self) -> set[str]:
        return {s.table for s in self._subscriptions}

    def dispatch(self, data: Any) -> None:
        """Route one raw change event to the handlers subscribed to its table."""
        if not isinstance(data, dict):
            return
        table = data.get("table")
        if not table:
            return
        notice = ChangeNotice(table, data.get("eventType") or data.get("type"))
        logger.debug(f"Change notice {notice!r}")
        for sub in list(self._subscriptions):
            if sub.table == table and sub.active:
                sub.handler(notice)

    async def connect(self) -> None:
        async with self._connect_lock:
            if self._sio and self._sio.connected:
                return
            await self._open()

    async def _open(self) -> None:
        self._sio = socketio.AsyncClient()
        ready_event = asyncio.Event()

        @self._sio.on("realtime:ready")
        async def on_ready(*_args: Any) -> None:
            self._connected = True
            for table in self._tables():
                await self._sio.emit("realtime:subscribe", {"table": table})  # type: ignore[union-attr]
            ready_event.set()

        @self._sio.on(CHANGE_EVENT)
        async def on_change(data: Any) -> None:
            self.dispatch(data)

        @self._sio.event
        async def disconnect(_reason: str = "") -> None:
            self._connected = False

        try:
            await self._sio.connect(
                self._base_url,
                auth={"apikey": self._api_key, "token": self._token},
                transports=self._transports,
                socketio_path=SOCKETIO_PATH,
            )
        except SocketIOConnectionError as e:
            self._sio = None
            raise ConnectionError(f"Realtime connection failed: {e}") from e

        try:
            await asyncio.wait_for(ready_event.wait(), timeout=self._ready_timeout)
        except asyncio.TimeoutError:
            await self._sio.disconnect()
            raise ConnectionError(f"Timed out waiting for 'realtime:ready' after {self._ready_timeout}s")

    async def subscribe(self, table: str, handler: ChangeHandler) -> Subscription:
        """Listen for insert/update/delete on a table. Connects on first use."""
        first_for_table = table not in self._tables()
        sub = Subscription(self, table, handler)
        self._subscriptions.append(sub)
        if not self.connected:
            try:
                await self.connect()
            except Exception:
                self._subscriptions.remove(sub)
                raise
        elif first_for_table:
            await self._sio.emit("realtime:subscribe", {"table": table})  # type: ignore[union-attr]
        return sub

    async def _release(self, sub: Subscription) -> None:
        try:
            self._subscriptions.remove(sub)
        except ValueError:
            return
        if sub.table not in self._tables() and self.connected:
            try:
                await self._sio.emit("realtime:unsubscribe", {"table": sub.table})  # type: ignore[union-attr]
            except Exception as e:
                logger.error(f"Unsubscribe failed for {sub.table}: {e}")

    async def disconnect(self) -> None:
        self._connected = False
        self._subscriptions.clear()
        if self._sio:
            await self._sio.disconnect()
            self._sio = None
