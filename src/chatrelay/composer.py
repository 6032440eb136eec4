"""
Outbound request composer.

Sends go over the REST channel, independently of the push channel, but only
once the session has an accepted client id. Text-only and media sends are
distinct wire shapes; a caption rides along only with media.
"""

import base64
import logging
import re
from typing import Any, Optional

from chatrelay.errors import (
    EmptyDraftError,
    MissingRecipientError,
    NotConnectedError,
    RelayError,
    SendError,
)
from chatrelay.gateway import GatewayAPI
from chatrelay.models.message import (
    LOCAL_SENDER,
    Ack,
    ChatMessage,
    MediaBody,
    OutboundDraft,
    PendingSend,
    TextBody,
)
from chatrelay.protocol import Dispatcher

logger = logging.getLogger(__name__)

CONTACT_SUFFIX = "@c.us"
SEND_OK_STATUS = "success"

_NON_DIGITS = re.compile(r"\D")


def normalize_recipient(recipient: str) -> str:
    """'(555) 123-4567' -> '5551234567@c.us'; already-qualified ids pass through."""
    if "@" in recipient:
        return recipient
    return _NON_DIGITS.sub("", recipient) + CONTACT_SUFFIX


def build_send_body(client_id: str, draft: OutboundDraft) -> dict[str, Any]:
    body: dict[str, Any] = {"clientId": client_id, "to": normalize_recipient(draft.recipient.strip())}
    text = draft.text or ""
    if draft.media is not None:
        body["media"] = {
            "mimetype": draft.media.mime_type,
            "filename": draft.media.filename,
            "data": base64.b64encode(draft.media.data).decode("ascii"),
        }
        if text.strip():
            body["caption"] = text
    else:
        body["message"] = text
    return body


def _local_message(draft: OutboundDraft) -> ChatMessage:
    text = draft.text or ""
    if draft.media is not None:
        body: Any = MediaBody(
            mime_type=draft.media.mime_type,
            data=draft.media.data,
            filename=draft.media.filename,
            caption=text if text.strip() else None,
        )
    else:
        body = TextBody(text=text)
    return ChatMessage(sender=LOCAL_SENDER, body=body, outgoing=True)


class OutboundComposer:
    def __init__(self, gateway: GatewayAPI, dispatcher: Dispatcher):
        self._gateway = gateway
        self._dispatcher = dispatcher
        self._pending: dict[str, PendingSend] = {}

    @property
    def pending(self) -> tuple[PendingSend, ...]:
        return tuple(self._pending.values())

    def validate(self, draft: OutboundDraft) -> str:
        """Check preconditions in order; returns the accepted client id."""
        client_id: Optional[str] = self._dispatcher.state.client_id
        if not client_id:
            raise NotConnectedError()
        if not draft.recipient or not draft.recipient.strip():
            raise MissingRecipientError()
        if normalize_recipient(draft.recipient.strip()).partition("@")[0] == "":
            raise MissingRecipientError(f"Recipient {draft.recipient!r} has no number")
        has_text = bool(draft.text and draft.text.strip())
        if not has_text and draft.media is None:
            raise EmptyDraftError()
        return client_id

    async def submit(self, draft: OutboundDraft) -> Ack:
        client_id = self.validate(draft)
        body = build_send_body(client_id, draft)
        pending = PendingSend(recipient=body["to"])
        self._pending[pending.idempotency_key] = pending
        try:
            result = await self._gateway.send(body, idempotency_key=pending.idempotency_key)
        except RelayError as e:
            logger.error(f"Error sending message to {body['to']}: {e}")
            raise SendError(str(e), details=e.details)
        finally:
            self._pending.pop(pending.idempotency_key, None)

        if result.get("error"):
            raise SendError(str(result["error"]), details=result)
        status = result.get("status")
        if status is not None and status != SEND_OK_STATUS:
            raise SendError(f"Send failed with status {status!r}", details=result)

        message = _local_message(draft)
        self._dispatcher.append(message)
        draft.clear()
        return Ack(
            status=str(result.get("status", SEND_OK_STATUS)),
            idempotency_key=pending.idempotency_key,
            message=message,
        )
