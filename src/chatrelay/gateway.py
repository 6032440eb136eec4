"""
Gateway REST API: session bootstrap and outbound sends.
"""

from typing import Any, Optional

from chatrelay.models.session import SessionIdentity
from chatrelay.transport.http import HttpClient


class GatewayAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def start(self, identity: SessionIdentity) -> dict[str, Any]:
        """Ask the gateway to spin up (or reattach to) the chat client for this identity."""
        result = await self._http.post("/start", {"userId": identity.user_id, "agentId": identity.agent_id})
        return result if isinstance(result, dict) else {}

    async def send(self, body: dict[str, Any], idempotency_key: Optional[str] = None) -> dict[str, Any]:
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        result = await self._http.post("/send", body, headers=headers)
        return result if isinstance(result, dict) else {}
