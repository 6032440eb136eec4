"""
chatrelay - session manager for a chat-relay gateway.

WebSocket push channel + REST send channel, driven by a session state machine.
"""

from chatrelay.client import AsyncRelayClient, SessionUpdate
from chatrelay.composer import OutboundComposer, normalize_recipient
from chatrelay.errors import (
    EmptyDraftError,
    IdentityError,
    InvalidIdentityError,
    MissingRecipientError,
    NotConnectedError,
    NotOpenError,
    ProtocolDecodeError,
    ProtocolSemanticError,
    RelayError,
    SendError,
    SessionStartError,
    TransportError,
)
from chatrelay.identity import IdentityResolver, resolve
from chatrelay.models.events import EventType
from chatrelay.models.message import ChatMessage, MediaPayload, OutboundDraft
from chatrelay.models.session import ConnectionState, ConnectionStatus, SessionIdentity
from chatrelay.protocol import Dispatcher, decode
from chatrelay.state import SessionStateMachine
from chatrelay.transport.channel import TransportChannel

__version__ = "0.1.0"
__all__ = [
    "AsyncRelayClient",
    "SessionUpdate",
    "OutboundComposer",
    "normalize_recipient",
    "RelayError",
    "IdentityError",
    "InvalidIdentityError",
    "SessionStartError",
    "TransportError",
    "NotOpenError",
    "ProtocolDecodeError",
    "ProtocolSemanticError",
    "SendError",
    "NotConnectedError",
    "MissingRecipientError",
    "EmptyDraftError",
    "IdentityResolver",
    "resolve",
    "EventType",
    "ChatMessage",
    "MediaPayload",
    "OutboundDraft",
    "ConnectionState",
    "ConnectionStatus",
    "SessionIdentity",
    "Dispatcher",
    "decode",
    "SessionStateMachine",
    "TransportChannel",
]
