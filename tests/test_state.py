"""Session state machine transitions."""

from chatrelay.models.session import ConnectionStatus
from chatrelay.state import START_FAILED_DETAIL, SessionStateMachine


def connecting(identity) -> SessionStateMachine:
    sm = SessionStateMachine(identity)
    sm.begin_connecting()
    return sm


def test_starts_disconnected(identity):
    sm = SessionStateMachine(identity)
    assert sm.status is ConnectionStatus.DISCONNECTED
    assert sm.client_id is None
    assert sm.pairing_code is None


def test_begin_connecting(identity):
    sm = connecting(identity)
    assert sm.status is ConnectionStatus.CONNECTING


def test_client_ready_with_own_identity_connects(identity):
    sm = connecting(identity)
    sm.on_client_ready("U_A")
    assert sm.status is ConnectionStatus.CONNECTED
    assert sm.client_id == "U_A"


def test_client_ready_with_foreign_identity_is_ignored(identity):
    sm = connecting(identity)
    for foreign in ("U_B", "X_A", "U", "", "u_a"):
        sm.on_client_ready(foreign)
        assert sm.status is ConnectionStatus.CONNECTING
        assert sm.client_id is None


def test_duplicate_client_ready_does_not_notify(identity):
    sm = connecting(identity)
    seen = []
    sm.add_listener(seen.append)
    sm.on_client_ready("U_A")
    sm.on_client_ready("U_A")
    assert [s.status for s in seen] == [ConnectionStatus.CONNECTED]


def test_late_client_ready_while_disconnected_is_ignored(identity):
    sm = SessionStateMachine(identity)
    sm.on_client_ready("U_A")
    assert sm.status is ConnectionStatus.DISCONNECTED
    assert sm.client_id is None


def test_close_from_any_state_disconnects(identity):
    sm = connecting(identity)
    sm.on_client_ready("U_A")
    sm.on_channel_closed("connection closed")
    assert sm.status is ConnectionStatus.DISCONNECTED
    assert sm.state.detail == "connection closed"
    assert sm.client_id is None

    sm.fail()
    sm.on_channel_closed()
    assert sm.status is ConnectionStatus.DISCONNECTED


def test_server_error_disconnects_and_records_error(identity):
    sm = connecting(identity)
    sm.on_client_ready("U_A")
    sm.on_server_error("Session expired")
    assert sm.status is ConnectionStatus.DISCONNECTED
    assert sm.state.detail == "Session expired"
    assert sm.last_error is not None
    assert str(sm.last_error) == "Session expired"


def test_state_change_updates_detail_only(identity):
    sm = connecting(identity)
    sm.on_state_change("OPENING")
    assert sm.status is ConnectionStatus.CONNECTING
    assert sm.state.detail == "OPENING"

    sm.on_client_ready("U_A")
    sm.on_state_change("CONFLICT")
    assert sm.status is ConnectionStatus.CONNECTED
    assert sm.state.detail == "CONFLICT"
    assert sm.client_id == "U_A"


def test_state_change_ignored_when_disconnected(identity):
    sm = SessionStateMachine(identity)
    sm.on_state_change("CONNECTED")
    assert sm.status is ConnectionStatus.DISCONNECTED
    assert sm.state.detail is None


def test_pairing_code_survives_connect_until_replaced(identity):
    sm = connecting(identity)
    sm.on_pairing_code("XYZ")
    sm.on_client_ready("U_A")
    assert sm.pairing_code == "XYZ"
    sm.on_channel_closed()
    assert sm.pairing_code == "XYZ"
    sm.on_pairing_code("ABC")
    assert sm.pairing_code == "ABC"
    sm.reset()
    assert sm.pairing_code is None


def test_fail_enters_erroring_and_reconnect_recovers(identity):
    sm = connecting(identity)
    sm.fail()
    assert sm.status is ConnectionStatus.ERRORING
    assert sm.state.label == START_FAILED_DETAIL
    sm.begin_connecting()
    assert sm.status is ConnectionStatus.CONNECTING


def test_opened_does_not_downgrade_connected(identity):
    sm = connecting(identity)
    sm.on_client_ready("U_A")
    sm.on_channel_opened()
    assert sm.status is ConnectionStatus.CONNECTED


def test_listener_removal_and_failure_isolation(identity):
    sm = SessionStateMachine(identity)
    seen = []

    def broken(_state):
        raise RuntimeError("listener bug")

    sm.add_listener(broken)
    remove = sm.add_listener(seen.append)
    sm.begin_connecting()
    remove()
    sm.on_channel_closed()
    assert [s.status for s in seen] == [ConnectionStatus.CONNECTING]
