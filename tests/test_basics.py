"""Basic unit tests for the chatrelay package."""

from chatrelay import (
    AsyncRelayClient,
    EmptyDraftError,
    EventType,
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
    __version__,
)
from chatrelay.models.session import ConnectionState, ConnectionStatus


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert AsyncRelayClient is not None


def test_error_hierarchy():
    assert issubclass(InvalidIdentityError, IdentityError)
    assert issubclass(NotOpenError, TransportError)
    for cls in (NotConnectedError, MissingRecipientError, EmptyDraftError):
        assert issubclass(cls, SendError)
    for cls in (IdentityError, SessionStartError, TransportError, ProtocolDecodeError,
                ProtocolSemanticError, SendError):
        assert issubclass(cls, RelayError)


def test_error_attributes():
    err = RelayError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    assert NotConnectedError().code == "not_connected"
    assert MissingRecipientError().code == "missing_recipient"
    assert EmptyDraftError().code == "empty_draft"
    assert SendError("boom", details={"status": "failed"}).details == {"status": "failed"}


def test_event_constants():
    assert EventType.QR == "qr"
    assert EventType.CLIENT_READY == "client_ready"
    assert EventType.STATE_CHANGE == "state_change"


def test_state_labels():
    assert ConnectionState().label == "Disconnected"
    assert ConnectionState(status=ConnectionStatus.CONNECTING).label == "Connecting..."
    assert ConnectionState(status=ConnectionStatus.CONNECTED, detail="CONFLICT").label == "Connected"
    assert str(ConnectionState(status=ConnectionStatus.CONNECTED, detail="CONFLICT")) == "Connected (CONFLICT)"
    assert ConnectionState(status=ConnectionStatus.ERRORING, detail="Error starting client").label == "Error starting client"
