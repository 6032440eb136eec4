"""
Identity resolution.

The connection token only has to be unique, not secret. It is generated once
per resolver and reused for every reconnect, so the gateway keeps routing the
same push channel to this process.
"""

import uuid
from typing import Optional

from chatrelay.errors import InvalidIdentityError
from chatrelay.models.session import SessionIdentity


class IdentityResolver:
    def __init__(self, connection_token: Optional[uuid.UUID] = None):
        self._token = connection_token

    @property
    def connection_token(self) -> uuid.UUID:
        if self._token is None:
            self._token = uuid.uuid4()
        return self._token

    def resolve(self, user_id: Optional[str], agent_id: Optional[str]) -> SessionIdentity:
        user_id = (user_id or "").strip()
        agent_id = (agent_id or "").strip()
        if not user_id:
            raise InvalidIdentityError("user_id is required")
        if not agent_id:
            raise InvalidIdentityError("agent_id is required")
        return SessionIdentity(user_id=user_id, agent_id=agent_id, connection_token=self.connection_token)


default_resolver = IdentityResolver()


def resolve(user_id: Optional[str], agent_id: Optional[str]) -> SessionIdentity:
    """Resolve against the process-wide resolver."""
    return default_resolver.resolve(user_id, agent_id)
