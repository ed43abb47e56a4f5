"""
Connection Registry

In-memory registry of live client connections, keyed by a generated
connection id. Each server instance owns its own registry, so several
servers can coexist in one process (tests do this).

Operations are synchronous and never suspend. A threading lock
serializes mutation because the same registry may be read from another
OS thread (the health endpoint under some servers, the test client).
"""

import logging
import threading
from uuid import uuid4

from plan_relay.registry.connection import Connection, ConnectionState

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Manages connection registration, lookup and removal.

    No persistence: a process restart forgets every connection and session.
    """

    def __init__(self):
        # Primary index: conn_id -> Connection
        self._connections: dict[str, Connection] = {}
        self._lock = threading.Lock()

    def _new_id(self) -> str:
        conn_id = uuid4().hex
        while conn_id in self._connections:
            conn_id = uuid4().hex
        return conn_id

    def register(
        self,
        remote_address: str | None = None,
        origin: str | None = None,
    ) -> Connection:
        """
        Register a newly accepted connection.

        Args:
            remote_address: Peer address reported by the transport
            origin: Origin declared by the client

        Returns:
            The new Connection (state CONNECTING)
        """
        with self._lock:
            conn = Connection(
                conn_id=self._new_id(),
                remote_address=remote_address,
                origin=origin,
            )
            self._connections[conn.conn_id] = conn

        logger.debug(f"Connection registered: {conn.to_public_dict()}")
        return conn

    def lookup(self, conn_id: str) -> Connection | None:
        """Get a live connection by id."""
        with self._lock:
            return self._connections.get(conn_id)

    def remove(self, conn_id: str) -> Connection | None:
        """
        Remove a connection. Removing an unknown id is a no-op.

        Returns:
            The removed Connection (marked CLOSED), or None if not found
        """
        with self._lock:
            conn = self._connections.pop(conn_id, None)
            if conn:
                conn.state = ConnectionState.CLOSED

        if conn:
            logger.debug(f"Connection removed: {conn_id}")
        return conn

    def bind_session(self, conn_id: str, session_id: str) -> Connection | None:
        """
        Bind a session identifier to a live connection.

        Returns:
            The updated Connection, or None if the connection is gone
        """
        with self._lock:
            conn = self._connections.get(conn_id)
            if conn:
                conn.session_id = session_id
            return conn

    def count(self) -> int:
        """Number of live connections."""
        with self._lock:
            return len(self._connections)

    def session_count(self) -> int:
        """Number of live connections bound to a session."""
        with self._lock:
            return sum(1 for c in self._connections.values() if c.session_id is not None)
