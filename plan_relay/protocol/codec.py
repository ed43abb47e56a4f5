"""
Message Codec

Decodes inbound text frames into message models and encodes outbound
models into text frames. Decoding and encoding are synchronous and
never touch connection state.
"""

import json
import logging

from pydantic import ValidationError

from plan_relay.errors import DecodeError, MessageValidationError
from plan_relay.protocol.envelope import (
    INBOUND_MODELS,
    InboundMessage,
    OutboundMessage,
    UnknownMessage,
)

logger = logging.getLogger(__name__)


def _describe_errors(error: ValidationError) -> list[str]:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "message"
        if item["type"] == "missing":
            problems.append(f"{field} is required")
        else:
            problems.append(f"{field}: {item['msg']}")
    return problems


def decode(data: str | bytes) -> InboundMessage:
    """
    Parse a transport frame into an inbound message.

    Args:
        data: Raw frame (text or UTF-8 bytes)

    Returns:
        The decoded message; unrecognised types become UnknownMessage

    Raises:
        DecodeError: Not JSON, not an object, or no string `type` field
        MessageValidationError: Known type with missing or invalid fields
    """
    try:
        obj = json.loads(data)
    except (ValueError, RecursionError) as e:
        # ValueError also covers bad UTF-8 and the integer digit limit
        raise DecodeError(f"invalid JSON: {e}") from e

    if not isinstance(obj, dict):
        raise DecodeError(f"expected a JSON object, got {type(obj).__name__}")

    message_type = obj.get("type")
    if message_type is None:
        raise DecodeError("missing 'type' field")
    if not isinstance(message_type, str):
        raise DecodeError(f"'type' must be a string, got {type(message_type).__name__}")

    model = INBOUND_MODELS.get(message_type)
    if model is None:
        return UnknownMessage(raw_type=message_type)

    try:
        return model.model_validate(obj)
    except ValidationError as e:
        raise MessageValidationError(message_type, _describe_errors(e)) from e


def encode(message: OutboundMessage) -> str:
    """
    Serialize an outbound message to a JSON text frame.

    Top-level fields that are None are omitted (e.g. ERROR without taskId);
    nested plan parameters are sent as-is.
    """
    data = message.model_dump(mode="json", by_alias=True)
    return json.dumps({k: v for k, v in data.items() if v is not None})
