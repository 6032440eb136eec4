"""
AsyncRelayClient - main entry point.
"""

import asyncio
import logging
from typing import AsyncGenerator, Literal, Optional

from pydantic import BaseModel

from chatrelay.composer import OutboundComposer
from chatrelay.errors import RelayError, SessionStartError
from chatrelay.gateway import GatewayAPI
from chatrelay.identity import IdentityResolver, default_resolver
from chatrelay.models.events import MessageEvent, ProtocolEvent, QrEvent
from chatrelay.models.message import Ack, ChatMessage, MediaPayload, OutboundDraft
from chatrelay.models.session import ConnectionState, ConnectionStatus, SessionIdentity
from chatrelay.protocol import Dispatcher
from chatrelay.state import START_FAILED_DETAIL, SessionStateMachine
from chatrelay.transport.channel import DEFAULT_WS_URL, RECONNECT_DELAY_S, Connector, TransportChannel
from chatrelay.transport.http import DEFAULT_BASE_URL, HttpClient

logger = logging.getLogger(__name__)


class SessionUpdate(BaseModel):
    kind: Literal["state", "qr", "message"]
    state: Optional[ConnectionState] = None
    qr: Optional[str] = None
    message: Optional[ChatMessage] = None


class AsyncRelayClient:
    def __init__(
        self,
        user_id: Optional[str],
        agent_id: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        ws_url: str = DEFAULT_WS_URL,
        reconnect_delay: float = RECONNECT_DELAY_S,
        resolver: Optional[IdentityResolver] = None,
        http: Optional[HttpClient] = None,
        connect: Optional[Connector] = None,
    ):
        self._user_id = user_id
        self._agent_id = agent_id
        self._resolver = resolver or default_resolver

        self.http = http or HttpClient(base_url=base_url)
        self.gateway = GatewayAPI(self.http)
        self.channel = TransportChannel(url=ws_url, reconnect_delay=reconnect_delay, connect=connect)

        self._session: Optional[SessionStateMachine] = None
        self._dispatcher: Optional[Dispatcher] = None
        self._composer: Optional[OutboundComposer] = None
        self._remove_channel_handler = None

    @property
    def identity(self) -> Optional[SessionIdentity]:
        return self._session.identity if self._session else None

    @property
    def session(self) -> Optional[SessionStateMachine]:
        return self._session

    @property
    def state(self) -> ConnectionState:
        return self._session.state if self._session else ConnectionState()

    @property
    def connected(self) -> bool:
        return self.state.status is ConnectionStatus.CONNECTED

    @property
    def pairing_code(self) -> Optional[str]:
        return self._session.pairing_code if self._session else None

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._dispatcher.messages if self._dispatcher else ()

    async def connect(self) -> None:
        """Resolve identity, open the push channel and bootstrap the gateway client.

        Raises IdentityError for bad ids and SessionStartError if /start fails.
        Returns once the channel is opening; use wait_until_connected() for readiness.
        """
        identity = self._resolver.resolve(self._user_id, self._agent_id)
        if self._session is None or self._session.identity != identity:
            self._session = SessionStateMachine(identity)
            self._dispatcher = Dispatcher(self._session)
            self._composer = OutboundComposer(self.gateway, self._dispatcher)
            if self._remove_channel_handler:
                self._remove_channel_handler()
            self._remove_channel_handler = self.channel.add_event_handler(self._dispatcher.on_channel_event)

        self._session.begin_connecting()
        self.channel.open(identity)

        try:
            started = await self.gateway.start(identity)
        except RelayError as e:
            logger.error(f"{START_FAILED_DETAIL}: {e}")
            await self.channel.close()
            self._session.fail(START_FAILED_DETAIL)
            raise SessionStartError(f"{START_FAILED_DETAIL}: {e}", details=e.details)
        remote_id = started.get("clientId")
        if remote_id and remote_id != identity.session_key:
            logger.warning(f"Gateway started client {remote_id!r}, expected {identity.session_key!r}")

    async def disconnect(self) -> None:
        """Close the push channel and cancel any pending reconnect. connect() may be called again."""
        await self.channel.close()

    async def close(self) -> None:
        """Disconnect and release the HTTP client. The client is unusable afterwards."""
        try:
            await self.channel.close()
        finally:
            await self.http.close()

    async def wait_until_connected(self, timeout: Optional[float] = None) -> None:
        self._ensure_session()
        if self.connected:
            return
        ready = asyncio.Event()

        def on_state(state: ConnectionState) -> None:
            if state.status is ConnectionStatus.CONNECTED:
                ready.set()

        remove = self._session.add_listener(on_state)  # type: ignore[union-attr]
        try:
            await asyncio.wait_for(ready.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(f"Not connected after {timeout}s (status: {self.state})")
        finally:
            remove()

    async def submit(self, draft: OutboundDraft) -> Ack:
        self._ensure_session()
        return await self._composer.submit(draft)  # type: ignore[union-attr]

    async def send(
        self,
        recipient: str,
        text: Optional[str] = None,
        media: Optional[MediaPayload] = None,
    ) -> Ack:
        return await self.submit(OutboundDraft(recipient=recipient, text=text, media=media))

    async def subscribe(self) -> AsyncGenerator[SessionUpdate, None]:
        """Stream state changes, QR codes and inbound messages until the consumer stops."""
        self._ensure_session()
        queue: asyncio.Queue[SessionUpdate] = asyncio.Queue()

        def on_state(state: ConnectionState) -> None:
            queue.put_nowait(SessionUpdate(kind="state", state=state))

        def on_event(event: ProtocolEvent) -> None:
            if isinstance(event, QrEvent):
                queue.put_nowait(SessionUpdate(kind="qr", qr=event.qr))
            elif isinstance(event, MessageEvent) and self._dispatcher and self._dispatcher.messages:
                queue.put_nowait(SessionUpdate(kind="message", message=self._dispatcher.messages[-1]))

        remove_state = self._session.add_listener(on_state)  # type: ignore[union-attr]
        remove_event = self._dispatcher.add_listener(on_event)  # type: ignore[union-attr]
        try:
            while True:
                yield await queue.get()
        finally:
            remove_state()
            remove_event()

    def _ensure_session(self) -> None:
        if self._session is None or self._dispatcher is None or self._composer is None:
            raise RelayError("not_started", "Session not started. Call connect() first.")
