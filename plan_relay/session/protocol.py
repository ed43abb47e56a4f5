"""
Session Protocol

The per-connection state machine of the relay.

Lifecycle: CONNECTING -> OPEN -> CLOSED.

- open(): registers the connection and greets the client with
  CONNECTION_ESTABLISHED.
- handle_frame(): decodes one inbound frame and dispatches it. INIT and
  RESTORE_SESSION are ordinary messages, not a handshake gate: a plan
  request before INIT is served normally.
- close(): removes the connection. Plan requests still in flight run to
  completion; their replies are discarded.

Plan requests (ANALYZE_TASK / EXECUTE_COMMAND) run as background tasks,
so a connection keeps processing frames while the generator works. Two
requests in a row produce two independent calls; replies go out in
completion order, each tagged with its own taskId.

Every failure while handling a frame becomes an ERROR reply. Nothing
raised here closes the connection.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable
from uuid import uuid4

from plan_relay.errors import (
    DecodeError,
    GenerationError,
    MessageValidationError,
    RelayError,
    ServiceUnavailable,
)
from plan_relay.planning import PlanGenerator
from plan_relay.protocol import codec
from plan_relay.protocol.envelope import (
    BrowserStateMessage,
    InboundMessage,
    InboundType,
    InitMessage,
    OutboundMessage,
    PlanRequest,
    RestoreSessionMessage,
    UnknownMessage,
    create_connection_established,
    create_error,
    create_session_init,
    create_session_restored,
    create_task_plan,
)
from plan_relay.registry import Connection, ConnectionRegistry, ConnectionState

logger = logging.getLogger(__name__)

# Sends one encoded text frame to the client
Sender = Callable[[str], Awaitable[None]]

UNKNOWN_TYPE_ERROR = "unknown message type"
PROCESSING_ERROR = "failed to process message"
PLAN_ERROR = "Failed to create task plan"


def generate_task_id() -> str:
    """Fresh task id for plan requests that did not supply one."""
    return uuid4().hex


class SessionProtocol:
    """
    Drives every connection of one relay instance.

    Owns no transport: the caller supplies a Sender per connection in
    open() and feeds frames in via handle_frame().
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        plan_generator: PlanGenerator | None,
        task_id_factory: Callable[[], str] = generate_task_id,
    ):
        """
        Initialize the protocol.

        Args:
            registry: Registry that owns connection records
            plan_generator: Plan generator, or None when running degraded
            task_id_factory: Produces task ids for requests without one
        """
        self._registry = registry
        self._planner = plan_generator
        self._new_task_id = task_id_factory

        # conn_id -> sender, present only while the connection is open
        self._senders: dict[str, Sender] = {}

        # Plan requests still running (kept referenced until done)
        self._inflight: set[asyncio.Task] = set()

        self._handlers: dict[InboundType, Callable[[str, InboundMessage], Awaitable[None]]] = {
            InboundType.INIT: self._handle_init,
            InboundType.RESTORE_SESSION: self._handle_restore_session,
            InboundType.ANALYZE_TASK: self._handle_plan_request,
            InboundType.EXECUTE_COMMAND: self._handle_plan_request,
            InboundType.BROWSER_STATE: self._handle_browser_state,
            InboundType.UNKNOWN: self._handle_unknown,
        }

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def planner_available(self) -> bool:
        return self._planner is not None

    @property
    def inflight_count(self) -> int:
        """Number of plan requests still running."""
        return len(self._inflight)

    # === Lifecycle ===

    async def open(
        self,
        send: Sender,
        remote_address: str | None = None,
        origin: str | None = None,
    ) -> Connection:
        """
        Register a newly accepted connection and greet the client.

        A failure to send the greeting is logged; the connection stays open.
        """
        conn = self._registry.register(remote_address=remote_address, origin=origin)
        conn.state = ConnectionState.OPEN
        self._senders[conn.conn_id] = send

        logger.info(f"Client connected: {conn.conn_id} (remote: {remote_address}, origin: {origin})")

        await self._deliver(conn.conn_id, create_connection_established(conn.conn_id))
        return conn

    async def close(self, conn_id: str) -> None:
        """
        Handle the transport's close event. Idempotent.

        In-flight plan requests are not cancelled; their replies will be dropped.
        """
        self._senders.pop(conn_id, None)
        conn = self._registry.remove(conn_id)
        if conn:
            logger.info(f"Client disconnected: {conn_id} (session: {conn.session_id})")

    def on_transport_error(self, conn_id: str, error: BaseException) -> None:
        """Log a transport error. Closure is driven only by the close event."""
        logger.warning(f"Transport error on {conn_id}: {error}")

    async def wait_idle(self) -> None:
        """Wait for all in-flight plan requests to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    # === Inbound ===

    async def handle_frame(self, conn_id: str, data: str | bytes) -> None:
        """
        Decode and act on one inbound frame.

        Args:
            conn_id: Connection the frame arrived on
            data: Raw frame
        """
        try:
            message = codec.decode(data)
        except DecodeError as e:
            logger.warning(f"Undecodable frame from {conn_id}: {e.reason}")
            await self._deliver(conn_id, create_error(PROCESSING_ERROR))
            return
        except MessageValidationError as e:
            logger.warning(f"Invalid {e.message_type} from {conn_id}: {e.problems}")
            await self._deliver(conn_id, create_error(e.client_message))
            return
        except Exception as e:
            logger.error(f"Error decoding frame from {conn_id}: {e}")
            await self._deliver(conn_id, create_error(PROCESSING_ERROR))
            return

        logger.debug(f"Received {message.type} from {conn_id}")

        handler = self._handlers[InboundType(message.type)]
        try:
            await handler(conn_id, message)
        except RelayError as e:
            logger.warning(f"{message.type} from {conn_id} failed: {e}")
            await self._deliver(conn_id, create_error(e.client_message))
        except Exception as e:
            logger.error(f"Error handling {message.type} from {conn_id}: {e}")
            await self._deliver(conn_id, create_error(PROCESSING_ERROR))

    async def _handle_init(self, conn_id: str, message: InitMessage) -> None:
        """INIT: bind the supplied session id, or the connection's own id."""
        session_id = message.session_id or conn_id
        self._registry.bind_session(conn_id, session_id)
        await self._deliver(conn_id, create_session_init(session_id))

    async def _handle_restore_session(self, conn_id: str, message: RestoreSessionMessage) -> None:
        """
        RESTORE_SESSION: rebind the connection to the given session id.

        There is no session store behind this; earlier task plans are not replayed.
        """
        self._registry.bind_session(conn_id, message.session_id)
        logger.info(f"Session {message.session_id} restored on {conn_id}")
        await self._deliver(conn_id, create_session_restored(message.session_id))

    async def _handle_plan_request(self, conn_id: str, message: PlanRequest) -> None:
        """ANALYZE_TASK / EXECUTE_COMMAND: start a plan request in the background."""
        task_id = message.task_id or self._new_task_id()

        if self._planner is None:
            await self._deliver(conn_id, create_error(ServiceUnavailable().client_message, task_id))
            return

        task = asyncio.create_task(
            self._run_plan(conn_id, task_id, message.command),
            name=f"plan_{task_id}",
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

        logger.info(f"Plan request {task_id} started for {conn_id}: {message.command[:80]!r}")

    async def _run_plan(self, conn_id: str, task_id: str, command: str) -> None:
        reply: OutboundMessage
        try:
            plan = await self._planner.generate(command)
            reply = create_task_plan(task_id, plan)
            logger.info(f"Plan request {task_id} completed ({len(plan.steps)} steps)")
        except GenerationError as e:
            logger.warning(f"Plan request {task_id} failed: {e}")
            reply = create_error(e.client_message, task_id)
        except Exception as e:
            logger.error(f"Plan request {task_id} raised unexpectedly: {e}")
            reply = create_error(PLAN_ERROR, task_id)

        await self._deliver(conn_id, reply)

    async def _handle_browser_state(self, conn_id: str, message: BrowserStateMessage) -> None:
        """BROWSER_STATE: informational only."""
        logger.debug(f"Browser state from {conn_id}: url={message.url}")

    async def _handle_unknown(self, conn_id: str, message: UnknownMessage) -> None:
        logger.warning(f"Unknown message type from {conn_id}: {message.raw_type!r}")
        await self._deliver(conn_id, create_error(UNKNOWN_TYPE_ERROR))

    # === Outbound ===

    async def _deliver(self, conn_id: str, message: OutboundMessage) -> bool:
        """
        Encode and send a message to a connection.

        Returns:
            True if handed to the transport, False if the connection is gone
            or the send failed
        """
        send = self._senders.get(conn_id)
        if send is None:
            logger.debug(f"Discarding {message.type} for closed connection {conn_id}")
            return False

        try:
            await send(codec.encode(message))
            return True
        except Exception as e:
            logger.warning(f"Failed to send {message.type} to {conn_id}: {e}")
            return False
