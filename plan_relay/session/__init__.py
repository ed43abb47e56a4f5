# Session Protocol
# Per-connection state machine: handshake messages, plan requests, error replies

from plan_relay.session.protocol import SessionProtocol, Sender, generate_task_id

__all__ = ["SessionProtocol", "Sender", "generate_task_id"]
