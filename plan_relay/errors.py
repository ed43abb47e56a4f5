"""
Relay Error Taxonomy

Every error that can occur while handling a single client message.
All of them are caught at the connection-message boundary and turned
into an ERROR reply; none of them closes the connection.
"""


class RelayError(Exception):
    """Base class for per-message relay failures."""

    #: Human-readable text sent back to the client in the ERROR reply
    client_message: str = "failed to process message"


class DecodeError(RelayError):
    """Raised when a frame is not a JSON object with a string `type` field."""

    def __init__(self, reason: str):
        self.reason = reason
        self.client_message = "failed to process message"
        super().__init__(reason)


class MessageValidationError(RelayError):
    """Raised when a well-formed message of a known type has invalid fields."""

    def __init__(self, message_type: str, problems: list[str]):
        self.message_type = message_type
        self.problems = problems
        self.client_message = f"invalid {message_type} message: {'; '.join(problems)}"
        super().__init__(self.client_message)


class ServiceUnavailable(RelayError):
    """Raised when a plan is requested but no plan generator could be constructed."""

    def __init__(self) -> None:
        self.client_message = "service unavailable"
        super().__init__(self.client_message)


class GenerationError(RelayError):
    """Raised when the plan generator was invoked but produced no usable plan."""

    def __init__(self, message: str = "Failed to create task plan", raw_output: str | None = None):
        self.raw_output = raw_output
        self.client_message = message
        super().__init__(message)
