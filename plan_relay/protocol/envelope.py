"""
Relay Message Models

Every frame on the WebSocket is a JSON object tagged by its `type` field.

Inbound messages form a closed set of variants. A frame whose `type` is
not recognised still decodes, into UnknownMessage, so the protocol layer
can answer with a structured error instead of dropping the connection.

Field names on the wire are camelCase (sessionId, taskId, clientId);
the models use snake_case with aliases.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from plan_relay.planning.models import TaskPlan


class InboundType(str, Enum):
    """
    Message types a client may send.

    UNKNOWN is never sent by a client; it tags frames whose type the relay
    does not recognise.
    """
    INIT = "INIT"
    RESTORE_SESSION = "RESTORE_SESSION"
    ANALYZE_TASK = "ANALYZE_TASK"
    EXECUTE_COMMAND = "EXECUTE_COMMAND"
    BROWSER_STATE = "BROWSER_STATE"
    UNKNOWN = "UNKNOWN"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


# === Inbound ===

class InitMessage(_WireModel):
    """Start (or re-start) a session; sessionId defaults to the connection id."""
    type: Literal["INIT"] = "INIT"
    session_id: str | None = Field(default=None, alias="sessionId")


class RestoreSessionMessage(_WireModel):
    """Rebind the connection to an existing client session id."""
    type: Literal["RESTORE_SESSION"] = "RESTORE_SESSION"
    session_id: str = Field(..., min_length=1, alias="sessionId")


class AnalyzeTaskMessage(_WireModel):
    """Ask for a plan for a free-text task."""
    type: Literal["ANALYZE_TASK"] = "ANALYZE_TASK"
    task: str = Field(..., min_length=1)
    task_id: str | None = Field(default=None, alias="taskId")

    @property
    def command(self) -> str:
        return self.task


class ExecuteCommandMessage(_WireModel):
    """Ask for a plan for a command, optionally with a caller-chosen task id."""
    type: Literal["EXECUTE_COMMAND"] = "EXECUTE_COMMAND"
    command: str = Field(..., min_length=1)
    task_id: str | None = Field(default=None, alias="taskId")


class BrowserStateMessage(_WireModel):
    """Informational snapshot of the client's browser (url, title, ...)."""
    type: Literal["BROWSER_STATE"] = "BROWSER_STATE"
    state: dict[str, Any] = Field(default_factory=dict)

    @property
    def url(self) -> str | None:
        url = self.state.get("url")
        return url if isinstance(url, str) else None


class UnknownMessage(_WireModel):
    """A frame with a type the relay does not handle."""
    type: Literal["UNKNOWN"] = "UNKNOWN"
    raw_type: str


InboundMessage = Union[
    InitMessage,
    RestoreSessionMessage,
    AnalyzeTaskMessage,
    ExecuteCommandMessage,
    BrowserStateMessage,
    UnknownMessage,
]

PlanRequest = Union[AnalyzeTaskMessage, ExecuteCommandMessage]

# Known wire types -> model (UNKNOWN is produced by the codec, never parsed)
INBOUND_MODELS: dict[str, type[BaseModel]] = {
    InboundType.INIT.value: InitMessage,
    InboundType.RESTORE_SESSION.value: RestoreSessionMessage,
    InboundType.ANALYZE_TASK.value: AnalyzeTaskMessage,
    InboundType.EXECUTE_COMMAND.value: ExecuteCommandMessage,
    InboundType.BROWSER_STATE.value: BrowserStateMessage,
}


# === Outbound ===

class ConnectionEstablished(_WireModel):
    type: Literal["CONNECTION_ESTABLISHED"] = "CONNECTION_ESTABLISHED"
    client_id: str = Field(..., alias="clientId")
    timestamp: datetime


class SessionInit(_WireModel):
    type: Literal["SESSION_INIT"] = "SESSION_INIT"
    session_id: str = Field(..., alias="sessionId")


class SessionRestored(_WireModel):
    type: Literal["SESSION_RESTORED"] = "SESSION_RESTORED"
    session_id: str = Field(..., alias="sessionId")


class TaskPlanMessage(_WireModel):
    type: Literal["TASK_PLAN"] = "TASK_PLAN"
    task_id: str = Field(..., alias="taskId")
    plan: TaskPlan


class ErrorMessage(_WireModel):
    """
    Error reply. `taskId` is set only when the error answers a plan
    request, so concurrent requests on one connection stay correlated.
    """
    type: Literal["ERROR"] = "ERROR"
    error: str
    task_id: str | None = Field(default=None, alias="taskId")


OutboundMessage = Union[
    ConnectionEstablished,
    SessionInit,
    SessionRestored,
    TaskPlanMessage,
    ErrorMessage,
]


# === Convenience constructors ===

def create_connection_established(client_id: str) -> ConnectionEstablished:
    """Greeting sent as soon as a connection is accepted."""
    return ConnectionEstablished(client_id=client_id, timestamp=datetime.now(timezone.utc))


def create_session_init(session_id: str) -> SessionInit:
    return SessionInit(session_id=session_id)


def create_session_restored(session_id: str) -> SessionRestored:
    return SessionRestored(session_id=session_id)


def create_task_plan(task_id: str, plan: TaskPlan) -> TaskPlanMessage:
    return TaskPlanMessage(task_id=task_id, plan=plan)


def create_error(error: str, task_id: str | None = None) -> ErrorMessage:
    """
    Create an error reply.

    Used for decode failures, validation failures, unknown types and
    failed plan requests alike.
    """
    return ErrorMessage(error=error, task_id=task_id)
