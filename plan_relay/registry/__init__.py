# Connection Registry
# Tracks live connections and their session bindings: register, lookup, remove

from plan_relay.registry.connection import Connection, ConnectionState
from plan_relay.registry.registry import ConnectionRegistry

__all__ = ["Connection", "ConnectionState", "ConnectionRegistry"]
