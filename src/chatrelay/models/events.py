"""
Inbound push-channel events.

Frames are JSON objects discriminated by `type`. Field names follow the
gateway's wire format; Python attribute names are snake_case aliases.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field


class EventType:
    QR = "qr"
    CLIENT_READY = "client_ready"
    MESSAGE = "message"
    ERROR = "error"
    STATE_CHANGE = "state_change"


KNOWN_EVENT_TYPES = frozenset({
    EventType.QR,
    EventType.CLIENT_READY,
    EventType.MESSAGE,
    EventType.ERROR,
    EventType.STATE_CHANGE,
})


class InboundMedia(BaseModel):
    mimetype: str = "application/octet-stream"
    data: str = ""  # base64
    filename: Optional[str] = None


class QrEvent(BaseModel):
    type: Literal["qr"] = "qr"
    qr: str


class ClientReadyEvent(BaseModel):
    type: Literal["client_ready"] = "client_ready"
    client_id: str = Field(alias="clientId")

    model_config = {"populate_by_name": True}


class MessageEvent(BaseModel):
    type: Literal["message"] = "message"
    chat_name: str = Field(default="", alias="chatName")
    text: Optional[str] = None
    message: Optional[str] = None  # older gateways send the body here
    media: Optional[InboundMedia] = None

    model_config = {"populate_by_name": True}

    @property
    def body_text(self) -> Optional[str]:
        return self.text if self.text is not None else self.message


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: Any = None

    @property
    def detail(self) -> str:
        if self.error is None:
            return "Unknown server error"
        if isinstance(self.error, dict):
            return str(self.error.get("message") or self.error)
        return str(self.error)


class StateChangeEvent(BaseModel):
    type: Literal["state_change"] = "state_change"
    state: Optional[str] = None


class UnknownEvent(BaseModel):
    """A well-formed frame whose `type` is not understood."""
    type: str
    raw: dict[str, Any] = Field(default_factory=dict)


KnownEvent = Annotated[
    Union[QrEvent, ClientReadyEvent, MessageEvent, ErrorEvent, StateChangeEvent],
    Field(discriminator="type"),
]

ProtocolEvent = Union[QrEvent, ClientReadyEvent, MessageEvent, ErrorEvent, StateChangeEvent, UnknownEvent]
