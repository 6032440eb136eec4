"""
Push-channel protocol: frame decoding and in-order dispatch.

decode() separates "can't parse" (ProtocolDecodeError) from "don't
understand" (UnknownEvent). Neither is fatal to the session.
"""

import base64
import binascii
import json
import logging
from typing import Any, Callable, Union

from pydantic import TypeAdapter, ValidationError

from chatrelay.errors import ProtocolDecodeError, TransportError
from chatrelay.models.events import (
    KNOWN_EVENT_TYPES,
    ClientReadyEvent,
    ErrorEvent,
    KnownEvent,
    MessageEvent,
    ProtocolEvent,
    QrEvent,
    StateChangeEvent,
    UnknownEvent,
)
from chatrelay.models.message import ChatMessage, MediaBody, TextBody
from chatrelay.state import SessionStateMachine
from chatrelay.transport.channel import ChannelEventType

logger = logging.getLogger(__name__)

EventListener = Callable[[ProtocolEvent], None]

_known_event = TypeAdapter(KnownEvent)


def decode(raw: Union[str, bytes]) -> ProtocolEvent:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolDecodeError(f"Frame is not UTF-8: {e}")
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ProtocolDecodeError(f"Frame is not valid JSON: {e}", raw=raw)
    if not isinstance(data, dict):
        raise ProtocolDecodeError("Frame is not a JSON object", raw=raw)
    event_type = data.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise ProtocolDecodeError("Frame has no type", raw=raw)
    if event_type not in KNOWN_EVENT_TYPES:
        return UnknownEvent(type=event_type, raw=data)
    try:
        return _known_event.validate_python(data)
    except ValidationError as e:
        raise ProtocolDecodeError(f"Invalid {event_type} frame: {e.error_count()} field error(s)", raw=raw)


def to_chat_message(event: MessageEvent) -> ChatMessage:
    text = event.body_text
    if event.media is None:
        return ChatMessage(sender=event.chat_name, body=TextBody(text=text or ""))
    try:
        data = base64.b64decode(event.media.data, validate=True)
    except (binascii.Error, ValueError):
        raise ProtocolDecodeError("Media payload is not valid base64")
    return ChatMessage(
        sender=event.chat_name,
        body=MediaBody(
            mime_type=event.media.mimetype,
            data=data,
            filename=event.media.filename or "",
            caption=text or None,
        ),
    )


class Dispatcher:
    """Applies decoded events to the state machine in receipt order and owns the chat log."""

    def __init__(self, state: SessionStateMachine):
        self._state = state
        self._messages: list[ChatMessage] = []
        self._listeners: list[EventListener] = []

    @property
    def state(self) -> SessionStateMachine:
        return self._state

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def add_listener(self, listener: EventListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def feed(self, raw: Union[str, bytes]) -> None:
        try:
            event = decode(raw)
        except ProtocolDecodeError as e:
            logger.warning(f"Dropping frame: {e}")
            return
        self.dispatch(event)

    def dispatch(self, event: ProtocolEvent) -> None:
        if isinstance(event, UnknownEvent):
            logger.warning(f"Unknown message type: {event.type}")
            return
        if isinstance(event, QrEvent):
            self._state.on_pairing_code(event.qr)
        elif isinstance(event, ClientReadyEvent):
            self._state.on_client_ready(event.client_id)
        elif isinstance(event, MessageEvent):
            try:
                self.append(to_chat_message(event))
            except ProtocolDecodeError as e:
                logger.warning(f"Dropping message from {event.chat_name!r}: {e}")
                return
        elif isinstance(event, ErrorEvent):
            logger.error(f"Error from server: {event.detail}")
            self._state.on_server_error(event.detail)
        elif isinstance(event, StateChangeEvent):
            self._state.on_state_change(event.state)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener failed")

    def on_channel_event(self, kind: str, payload: Any) -> None:
        """Channel event handler: frames are fed, lifecycle signals drive the state machine."""
        if kind == ChannelEventType.FRAME:
            self.feed(payload)
        elif kind == ChannelEventType.OPENED:
            self._state.on_channel_opened()
        elif kind == ChannelEventType.CLOSED:
            self._state.on_channel_closed(payload if isinstance(payload, str) else None)
        elif kind == ChannelEventType.ERROR:
            reason = str(payload) if isinstance(payload, TransportError) else None
            self._state.on_channel_closed(reason)
