# Transport Layer
# FastAPI app, WebSocket connection handling and per-connection outboxes
# Separated from protocol logic so the protocol can be driven without a socket

from plan_relay.transport.app import create_app
from plan_relay.transport.handler import WebSocketHandler
from plan_relay.transport.outbox import ConnectionOutbox, OutboxClosedError, OutboxFullError

__all__ = [
    "create_app",
    "WebSocketHandler",
    "ConnectionOutbox",
    "OutboxClosedError",
    "OutboxFullError",
]
