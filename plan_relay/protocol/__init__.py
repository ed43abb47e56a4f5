# Relay Protocol
# Wire message models and the JSON codec for the browser-extension WebSocket

from plan_relay.protocol.envelope import (
    InboundType,
    InboundMessage,
    OutboundMessage,
    InitMessage,
    RestoreSessionMessage,
    AnalyzeTaskMessage,
    ExecuteCommandMessage,
    BrowserStateMessage,
    UnknownMessage,
    ConnectionEstablished,
    SessionInit,
    SessionRestored,
    TaskPlanMessage,
    ErrorMessage,
)
from plan_relay.protocol.codec import decode, encode

__all__ = [
    "InboundType",
    "InboundMessage",
    "OutboundMessage",
    "InitMessage",
    "RestoreSessionMessage",
    "AnalyzeTaskMessage",
    "ExecuteCommandMessage",
    "BrowserStateMessage",
    "UnknownMessage",
    "ConnectionEstablished",
    "SessionInit",
    "SessionRestored",
    "TaskPlanMessage",
    "ErrorMessage",
    "decode",
    "encode",
]
