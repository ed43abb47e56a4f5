"""
Connection Outbox

Per-connection outgoing queue drained by a single writer task.

Replies for one connection come from the receive loop and from any
number of background plan requests. Funnelling them through one writer
keeps frames from interleaving on the socket and preserves the order in
which replies were produced.
"""

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class OutboxClosedError(Exception):
    """Raised when a message is put on an outbox that has been stopped."""
    def __init__(self, conn_id: str):
        self.conn_id = conn_id
        super().__init__(f"Outbox closed for {conn_id}")


class OutboxFullError(Exception):
    """Raised when the outbox is full (client not reading)."""
    def __init__(self, conn_id: str, max_size: int):
        self.conn_id = conn_id
        self.max_size = max_size
        super().__init__(f"Outbox full for {conn_id} (size={max_size})")


class ConnectionOutbox:
    """
    Outbound message queue for a single connection.

    put() never blocks: a full queue raises OutboxFullError and the caller
    drops that message.
    """

    def __init__(
        self,
        send_fn: Callable[[str], Awaitable[None]],
        max_size: int = 100,
        conn_id: str = "unassigned",
    ):
        """
        Initialize the outbox.

        Args:
            send_fn: Async function writing one text frame to the socket
            max_size: Max queued frames before put() fails
            conn_id: Connection identifier for logs (set once the connection is registered)
        """
        self.conn_id = conn_id
        self._send_fn = send_fn
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_size)
        self._writer_task: asyncio.Task | None = None
        self._closed = False
        self._max_size = max_size

    def start(self) -> None:
        """Start the writer task."""
        if self._writer_task is None:
            self._writer_task = asyncio.create_task(
                self._writer_loop(),
                name=f"outbox_writer_{self.conn_id}"
            )

    async def stop(self) -> None:
        """Stop the writer task. Frames still queued are dropped."""
        self._closed = True

        if self._writer_task:
            self._writer_task.cancel()
            try:
                await self._writer_task
            except asyncio.CancelledError:
                pass
            self._writer_task = None

    async def put(self, message: str) -> None:
        """
        Queue a frame for sending.

        Has the Sender signature so it can be handed to SessionProtocol.open().

        Raises:
            OutboxClosedError: If the outbox was stopped
            OutboxFullError: If the queue is at capacity
        """
        if self._closed:
            raise OutboxClosedError(self.conn_id)

        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            raise OutboxFullError(self.conn_id, self._max_size)

    @property
    def qsize(self) -> int:
        """Current queue depth."""
        return self._queue.qsize()

    async def _writer_loop(self) -> None:
        """Single writer loop that drains the queue."""
        while not self._closed:
            try:
                message = await self._queue.get()
            except asyncio.CancelledError:
                break

            try:
                await self._send_fn(message)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.warning(f"Send failed for {self.conn_id}: {e}")
                # Socket is most likely gone
                self._closed = True
                break
            finally:
                self._queue.task_done()
