"""
Session state machine.

    Disconnected --begin_connecting/opened--> Connecting
    Connecting --client_ready(own id)--> Connected
    any --closed/error/error event--> Disconnected
    any --fail--> Erroring

`state_change` events only update the detail of Connecting/Connected.
There is no terminal state; the channel's reconnect policy can always move
the machine back to Connecting.
"""

import logging
from typing import Callable, Optional

from chatrelay.errors import ProtocolSemanticError
from chatrelay.models.session import ConnectionState, ConnectionStatus, SessionIdentity

logger = logging.getLogger(__name__)

StateListener = Callable[[ConnectionState], None]

START_FAILED_DETAIL = "Error starting client"

_LIVE = (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED)


class SessionStateMachine:
    def __init__(self, identity: SessionIdentity):
        self._identity = identity
        self._state = ConnectionState()
        self._pairing_code: Optional[str] = None
        self._client_id: Optional[str] = None
        self._last_error: Optional[ProtocolSemanticError] = None
        self._listeners: list[StateListener] = []

    @property
    def identity(self) -> SessionIdentity:
        return self._identity

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def pairing_code(self) -> Optional[str]:
        return self._pairing_code

    @property
    def client_id(self) -> Optional[str]:
        """Accepted client id; only set while Connected."""
        return self._client_id

    @property
    def last_error(self) -> Optional[ProtocolSemanticError]:
        return self._last_error

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    # -- transitions ----------------------------------------------------------

    def begin_connecting(self) -> None:
        if self._state.status in (ConnectionStatus.DISCONNECTED, ConnectionStatus.ERRORING):
            self._set(ConnectionState(status=ConnectionStatus.CONNECTING))

    def on_channel_opened(self) -> None:
        self.begin_connecting()

    def on_channel_closed(self, reason: Optional[str] = None) -> None:
        self._set(ConnectionState(status=ConnectionStatus.DISCONNECTED, detail=reason or None))

    def on_client_ready(self, client_id: str) -> None:
        expected = self._identity.session_key
        if client_id != expected:
            logger.warning(f"Ignoring client_ready for foreign client {client_id!r} (expected {expected!r})")
            return
        if self._state.status is ConnectionStatus.CONNECTED:
            return
        if self._state.status is not ConnectionStatus.CONNECTING:
            logger.info(f"Ignoring late client_ready while {self._state.status.value}")
            return
        self._client_id = client_id
        self._set(ConnectionState(status=ConnectionStatus.CONNECTED))

    def on_server_error(self, detail: str) -> None:
        self._last_error = ProtocolSemanticError(detail)
        self._set(ConnectionState(status=ConnectionStatus.DISCONNECTED, detail=detail))

    def on_state_change(self, detail: Optional[str]) -> None:
        if self._state.status not in _LIVE:
            logger.debug(f"Ignoring state_change {detail!r} while {self._state.status.value}")
            return
        self._set(ConnectionState(status=self._state.status, detail=detail))

    def on_pairing_code(self, qr: str) -> None:
        self._pairing_code = qr

    def fail(self, detail: str = START_FAILED_DETAIL) -> None:
        self._set(ConnectionState(status=ConnectionStatus.ERRORING, detail=detail))

    def reset(self) -> None:
        """Forget everything learned from the gateway (session restart)."""
        self._pairing_code = None
        self._last_error = None
        self._set(ConnectionState())

    def _set(self, new: ConnectionState) -> None:
        if new == self._state:
            return
        old = self._state
        self._state = new
        if new.status is not ConnectionStatus.CONNECTED:
            self._client_id = None
        logger.info(f"Session {self._identity.session_key}: {old} -> {new}")
        for listener in list(self._listeners):
            try:
                listener(new)
            except Exception:
                logger.exception("State listener failed")
