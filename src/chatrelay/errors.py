"""
chatrelay error types.

Only IdentityError, SessionStartError and SendError reach the caller during
normal operation. Transport and decode failures are recovered internally.
"""

from typing import Any, Optional


class RelayError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class IdentityError(RelayError):
    def __init__(self, message: str, code: str = "identity_error"):
        super().__init__(code, message)


class InvalidIdentityError(IdentityError):
    def __init__(self, message: str):
        super().__init__(message, code="invalid_identity")


class SessionStartError(RelayError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("session_start_error", message, details)


class TransportError(RelayError):
    def __init__(self, message: str, code: str = "transport_error"):
        super().__init__(code, message)


class NotOpenError(TransportError):
    def __init__(self, message: str = "Channel is not open"):
        super().__init__(message, code="not_open")


class ProtocolDecodeError(RelayError):
    def __init__(self, message: str, raw: Any = None):
        super().__init__("decode_error", message, {"raw": raw} if raw is not None else None)


class ProtocolSemanticError(RelayError):
    """An explicit `error` event pushed by the gateway."""

    def __init__(self, message: str):
        super().__init__("server_error", message)


class SendError(RelayError):
    def __init__(self, message: str, code: str = "send_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class NotConnectedError(SendError):
    def __init__(self, message: str = "No client ID. Please connect first."):
        super().__init__(message, code="not_connected")


class MissingRecipientError(SendError):
    def __init__(self, message: str = "Recipient is required"):
        super().__init__(message, code="missing_recipient")


class EmptyDraftError(SendError):
    def __init__(self, message: str = "Nothing to send: provide text or media"):
        super().__init__(message, code="empty_draft")
