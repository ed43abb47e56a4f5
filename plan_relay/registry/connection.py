"""
Connection Record Model

Represents one live WebSocket connection between a browser-extension
client and the relay, plus the session identifier the client bound to it.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class ConnectionState(str, Enum):
    """Connection lifecycle state."""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Connection(BaseModel):
    """
    The relay's view of a connected client.

    Identity and accept-time details never change; only `session_id`
    (via INIT/RESTORE_SESSION) and `state` are mutated.
    """

    # === Identity ===
    conn_id: str = Field(
        ...,
        frozen=True,
        description="Unique connection identifier, also sent to the client as clientId"
    )

    # === Accept-time details (informational) ===
    remote_address: str | None = Field(
        default=None,
        frozen=True,
        description="Peer address reported by the transport"
    )
    origin: str | None = Field(
        default=None,
        frozen=True,
        description="Origin header declared by the client"
    )
    connected_at: datetime = Field(
        default_factory=_utcnow,
        frozen=True,
        description="When the connection was accepted"
    )

    # === Session ===
    session_id: str | None = Field(
        default=None,
        description="Client session bound via INIT or RESTORE_SESSION"
    )

    # === Lifecycle ===
    state: ConnectionState = Field(default=ConnectionState.CONNECTING)

    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN

    def to_public_dict(self) -> dict:
        """Return a public view of the connection (for logs and diagnostics)."""
        return {
            "conn_id": self.conn_id,
            "remote_address": self.remote_address,
            "origin": self.origin,
            "session_id": self.session_id,
            "state": self.state.value,
            "connected_at": self.connected_at.isoformat(),
        }
