"""
Session identity and connection state models.
"""

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class SessionIdentity(BaseModel):
    user_id: str
    agent_id: str
    connection_token: UUID

    model_config = {"frozen": True}

    @property
    def session_key(self) -> str:
        """Client id the gateway reports in `client_ready`."""
        return f"{self.user_id}_{self.agent_id}"


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERRORING = "erroring"


_LABELS = {
    ConnectionStatus.DISCONNECTED: "Disconnected",
    ConnectionStatus.CONNECTING: "Connecting...",
    ConnectionStatus.CONNECTED: "Connected",
    ConnectionStatus.ERRORING: "Error",
}


class ConnectionState(BaseModel):
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    detail: Optional[str] = None  # server-reported sub-state or error text

    model_config = {"frozen": True}

    @property
    def label(self) -> str:
        if self.status is ConnectionStatus.ERRORING and self.detail:
            return self.detail
        return _LABELS[self.status]

    def __str__(self) -> str:
        if self.detail and self.status is not ConnectionStatus.ERRORING:
            return f"{self.label} ({self.detail})"
        return self.label
