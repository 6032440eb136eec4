"""
WebSocket push channel with fixed-delay reconnect.

Connection: {ws_url}?webSocketId={connection_token}.
At most one connection attempt or live connection exists at a time. After an
unexpected close or error exactly one reconnect is scheduled; open() and
close() cancel it.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx
import websockets
from websockets.exceptions import ConnectionClosed

from chatrelay.errors import NotOpenError, TransportError
from chatrelay.models.session import SessionIdentity

logger = logging.getLogger(__name__)

DEFAULT_WS_URL = "ws://localhost:3000"
RECONNECT_DELAY_S = 5.0
CLIENT_CLOSE_REASON = "closed by client"

ChannelEventHandler = Callable[[str, Any], None]
Connector = Callable[[str], Awaitable[Any]]


class ChannelEventType:
    OPENED = "opened"
    CLOSED = "closed"
    ERROR = "error"
    FRAME = "frame"


def build_url(base_url: str, identity: SessionIdentity) -> str:
    url = httpx.URL(base_url).copy_merge_params({"webSocketId": str(identity.connection_token)})
    return str(url)


class ChannelHandle:
    __slots__ = ("url", "attempt", "task")

    def __init__(self, url: str, attempt: int, task: "asyncio.Task[None]"):
        self.url = url
        self.attempt = attempt
        self.task = task

    def done(self) -> bool:
        return self.task.done()

    def __repr__(self) -> str:
        return f"ChannelHandle(url={self.url!r}, attempt={self.attempt})"


class TransportChannel:
    def __init__(
        self,
        url: str = DEFAULT_WS_URL,
        reconnect_delay: float = RECONNECT_DELAY_S,
        connect: Optional[Connector] = None,
    ):
        self._url = url
        self._reconnect_delay = reconnect_delay
        self._connect = connect or websockets.connect
        self._identity: Optional[SessionIdentity] = None
        self._ws: Any = None
        self._handle: Optional[ChannelHandle] = None
        self._reconnect_timer: Optional[asyncio.TimerHandle] = None
        self._closing = False
        self._attempts = 0
        self._event_handlers: list[ChannelEventHandler] = []

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def reconnect_delay(self) -> float:
        return self._reconnect_delay

    def add_event_handler(self, handler: ChannelEventHandler) -> Callable[[], None]:
        """Add a lifecycle handler called as handler(kind, payload). Returns a cleanup function."""
        self._event_handlers.append(handler)

        def remove() -> None:
            try:
                self._event_handlers.remove(handler)
            except ValueError:
                pass
        return remove

    def open(self, identity: SessionIdentity) -> ChannelHandle:
        """Start connecting in the background. Must be called from a running loop."""
        self._identity = identity
        self._closing = False
        self._cancel_reconnect()
        if self._handle is not None and not self._handle.done():
            return self._handle
        return self._start_attempt()

    async def send(self, raw: str) -> None:
        if self._ws is None:
            raise NotOpenError()
        try:
            await self._ws.send(raw)
        except ConnectionClosed as e:
            raise NotOpenError(f"Channel closed while sending: {e}")

    async def close(self) -> None:
        """Cancel any pending reconnect and release the connection."""
        self._closing = True
        self._cancel_reconnect()
        handle, self._handle = self._handle, None
        was_open = self._ws is not None
        if handle is not None and not handle.done():
            handle.task.cancel()
            try:
                await handle.task
            except asyncio.CancelledError:
                pass
        await self._release()
        if was_open:
            self._emit(ChannelEventType.CLOSED, CLIENT_CLOSE_REASON)

    # -- internals ------------------------------------------------------------

    def _start_attempt(self) -> ChannelHandle:
        assert self._identity is not None
        self._attempts += 1
        url = build_url(self._url, self._identity)
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run(url))
        self._handle = ChannelHandle(url, self._attempts, task)
        return self._handle

    async def _run(self, url: str) -> None:
        logger.info(f"Connecting to {url} (attempt {self._attempts})")
        try:
            ws = await self._connect(url)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Connection to {url} failed: {e}")
            self._on_failure(ChannelEventType.ERROR, TransportError(f"Connection failed: {e}"))
            return

        self._ws = ws
        logger.info("WebSocket connection opened.")
        self._emit(ChannelEventType.OPENED, self._handle)

        kind, payload = ChannelEventType.CLOSED, "connection closed"
        try:
            async for raw in ws:
                self._emit(ChannelEventType.FRAME, raw)
        except ConnectionClosed as e:
            payload = f"connection closed: {e}"
        except asyncio.CancelledError:
            await self._release()
            raise
        except Exception as e:
            logger.warning(f"WebSocket error: {e}")
            kind, payload = ChannelEventType.ERROR, TransportError(str(e))
        await self._release()
        logger.info(f"Connection closed ({payload}).")
        self._on_failure(kind, payload)

    def _on_failure(self, kind: str, payload: Any) -> None:
        if self._closing:
            return
        self._emit(kind, payload)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        loop = asyncio.get_running_loop()
        logger.info(f"Reconnecting in {self._reconnect_delay:.1f}s")
        self._reconnect_timer = loop.call_later(self._reconnect_delay, self._fire_reconnect)

    def _fire_reconnect(self) -> None:
        self._reconnect_timer = None
        if self._closing or self._identity is None:
            return
        if self._handle is not None and not self._handle.done():
            return
        self._start_attempt()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    async def _release(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing socket: {e}")

    def _emit(self, kind: str, payload: Any) -> None:
        for handler in list(self._event_handlers):
            try:
                handler(kind, payload)
            except Exception:
                logger.exception(f"Channel handler failed for {kind}")
