"""
Chat log entries and outbound drafts.
"""

import mimetypes
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

LOCAL_SENDER = "You"


class TextBody(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class MediaBody(BaseModel):
    kind: Literal["media"] = "media"
    mime_type: str
    data: bytes
    filename: str = ""
    caption: Optional[str] = None


class ChatMessage(BaseModel):
    sender: str
    body: Union[TextBody, MediaBody] = Field(discriminator="kind")
    outgoing: bool = False

    @property
    def text(self) -> Optional[str]:
        return self.body.text if isinstance(self.body, TextBody) else None

    @property
    def media(self) -> Optional[MediaBody]:
        return self.body if isinstance(self.body, MediaBody) else None


class MediaPayload(BaseModel):
    mime_type: str
    data: bytes
    filename: str

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "MediaPayload":
        p = Path(path)
        mime_type, _ = mimetypes.guess_type(p.name)
        return cls(
            mime_type=mime_type or "application/octet-stream",
            data=p.read_bytes(),
            filename=p.name,
        )


class OutboundDraft(BaseModel):
    """A message being composed. Cleared after a successful submit."""
    recipient: str = ""
    text: Optional[str] = None
    media: Optional[MediaPayload] = None

    def clear(self) -> None:
        self.recipient = ""
        self.text = None
        self.media = None


class PendingSend(BaseModel):
    idempotency_key: str = Field(default_factory=lambda: str(uuid.uuid4()))
    recipient: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Ack(BaseModel):
    status: str
    idempotency_key: str
    message: ChatMessage
