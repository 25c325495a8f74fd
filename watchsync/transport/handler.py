"""
WebSocket Handler

The transport side of the relay. Each WebSocket connection gets a fresh
connection id and a dedicated outbound queue. Inbound frames are parsed into
the relay envelope and handed to the ConnectionRouter; when the socket goes
away the router is told so it can reconcile sessions.

Frames are JSON text in the envelope format:
    {"type": "join_session", "payload": {"sessionId": "V1StGXR8_Z"}}
"""

import logging
from uuid import uuid4

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from watchsync.protocol import INVALID_MESSAGE, RelayMessage, create_error
from watchsync.session import SessionRegistry
from watchsync.transport.queue import ConnectionQueueManager, QueueFullError
from watchsync.transport.router import ConnectionRouter

logger = logging.getLogger(__name__)


def new_conn_id() -> str:
    """Generate a connection identifier."""
    return f"conn_{uuid4().hex[:12]}"


class WebSocketHandler:
    """
    Handles WebSocket connection lifecycles for the relay.

    A single handler instance serves every connection; per-connection state
    lives in the queue manager and, for session bindings, in the registry.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        queue_manager: ConnectionQueueManager | None = None,
    ):
        """
        Initialize the handler.

        Args:
            registry: Session registry shared by all connections
            queue_manager: Per-connection outbound queue manager
        """
        self._queues = queue_manager or ConnectionQueueManager()
        self._router = ConnectionRouter(registry, self._send_to_connection)

    async def handle_connection(self, websocket: WebSocket) -> None:
        """
        Handle a WebSocket connection from accept to close.

        Args:
            websocket: The WebSocket connection
        """
        await websocket.accept()

        conn_id = new_conn_id()
        self._queues.register(conn_id, websocket.send_text)
        logger.info(f"Connection opened: {conn_id}")

        try:
            while True:
                message = await self._receive_message(websocket, conn_id)
                if message is None:
                    continue

                await self._router.handle_event(conn_id, message)

        except WebSocketDisconnect:
            logger.info(f"Connection closed: {conn_id}")

        except Exception as e:
            logger.exception(f"WebSocket error on {conn_id}: {e}")

        finally:
            await self._router.handle_disconnect(conn_id)
            await self._queues.unregister(conn_id)

    async def _receive_message(
        self,
        websocket: WebSocket,
        conn_id: str
    ) -> RelayMessage | None:
        """
        Receive and parse one envelope.

        Returns:
            Parsed message, or None if the frame was invalid (already answered)

        Raises:
            WebSocketDisconnect: If the peer went away
        """
        data = await websocket.receive_text()

        try:
            return RelayMessage.model_validate_json(data)
        except ValidationError as e:
            logger.warning(f"Invalid message from {conn_id}: {e}")
            await self._send_to_connection(conn_id, create_error(INVALID_MESSAGE))
            return None

    async def _send_to_connection(self, conn_id: str, message: RelayMessage) -> None:
        """
        Queue a message for a connection.

        Delivery is best-effort: unknown connections and full queues drop the
        message.
        """
        try:
            queued = self._queues.send(conn_id, message.model_dump_json())
        except QueueFullError as e:
            logger.warning(f"Dropping {message.type} for {conn_id}: {e}")
            return

        if not queued:
            logger.debug(f"Dropping {message.type} for {conn_id}: connection gone or its writer stopped")

    @property
    def connection_count(self) -> int:
        """Number of open connections."""
        return self._queues.connection_count()
