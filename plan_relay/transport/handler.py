"""
WebSocket Handler

Binds a FastAPI WebSocket to the SessionProtocol.

For each connection:
1. The declared Origin is checked against the allow-list; a mismatch is
   rejected before accept (HTTP 403) and never reaches the protocol.
2. The socket is accepted and an outbox (single writer) is started.
3. The protocol registers the connection and sends CONNECTION_ESTABLISHED.
4. Every text or binary frame is handed to the protocol. A frame that
   fails to process never ends the connection.
5. On disconnect (or a failed receive, closed with 1011) the protocol
   closes the connection and the outbox stops.
"""

from __future__ import annotations

import logging

from fastapi import WebSocket, WebSocketDisconnect, status
from fastapi.websockets import WebSocketState

from plan_relay.config import RelaySettings
from plan_relay.session import SessionProtocol
from plan_relay.transport.outbox import ConnectionOutbox

logger = logging.getLogger(__name__)


class WebSocketHandler:
    """
    Handles WebSocket connection lifecycles for one relay instance.
    """

    def __init__(self, protocol: SessionProtocol, settings: RelaySettings):
        """
        Initialize the handler.

        Args:
            protocol: Session protocol driving all connections
            settings: Relay settings (origin allow-list, outbox size)
        """
        self._protocol = protocol
        self._settings = settings

    async def handle_connection(self, websocket: WebSocket) -> None:
        """
        Handle a WebSocket connection lifecycle.

        Args:
            websocket: The WebSocket connection
        """
        origin = websocket.headers.get("origin")
        if not self._settings.origin_allowed(origin):
            logger.warning(f"Rejected connection from origin {origin!r}")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        await websocket.accept()

        remote = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else None
        outbox = ConnectionOutbox(websocket.send_text, max_size=self._settings.outbox_size)
        outbox.start()

        try:
            conn = await self._protocol.open(outbox.put, remote_address=remote, origin=origin)
        except Exception as e:
            logger.error(f"Failed to register connection from {remote}: {e}")
            await outbox.stop()
            await self._close_socket(websocket, status.WS_1011_INTERNAL_ERROR)
            return

        conn_id = outbox.conn_id = conn.conn_id
        close_code = status.WS_1000_NORMAL_CLOSURE
        try:
            close_code = await self._receive_loop(websocket, conn_id)
        finally:
            await self._protocol.close(conn_id)
            await outbox.stop()
            await self._close_socket(websocket, close_code)

    async def _receive_loop(self, websocket: WebSocket, conn_id: str) -> int:
        """
        Feed frames to the protocol until the socket goes away.

        Only a failing receive ends the loop. A frame that fails to process
        is logged and the connection keeps going.

        Returns:
            Close code to send if the socket is still open
        """
        while True:
            try:
                message = await websocket.receive()
            except WebSocketDisconnect:
                return status.WS_1000_NORMAL_CLOSURE
            except Exception as e:
                self._protocol.on_transport_error(conn_id, e)
                return status.WS_1011_INTERNAL_ERROR

            if message["type"] == "websocket.disconnect":
                return status.WS_1000_NORMAL_CLOSURE

            data = message.get("text")
            if data is None:
                data = message.get("bytes")
            if data is None:
                continue

            try:
                await self._protocol.handle_frame(conn_id, data)
            except Exception as e:
                logger.error(f"Error processing frame from {conn_id}: {e}")

    async def _close_socket(self, websocket: WebSocket, code: int) -> None:
        """Close the socket unless either side already closed it."""
        if (
            websocket.client_state != WebSocketState.CONNECTED
            or websocket.application_state != WebSocketState.CONNECTED
        ):
            return
        try:
            await websocket.close(code=code)
        except Exception as e:
            logger.debug(f"Close failed: {e}")
