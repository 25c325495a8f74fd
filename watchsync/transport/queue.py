"""
Outbound Queues

Every connection owns a bounded queue and one writer task that drains it
into the WebSocket. Relay operations only enqueue, so a slow or dead peer
never holds up the connection that triggered the message.

Delivery is best-effort:
- a full queue rejects the message (QueueFullError) and the caller drops it
- once a send fails the queue is dead and refuses everything after it
"""

import asyncio
import logging
from typing import Awaitable, Callable

from watchsync.config import DEFAULT_MAX_QUEUE_SIZE

logger = logging.getLogger(__name__)

SendFn = Callable[[str], Awaitable[None]]


class QueueFullError(Exception):
    """Raised when a connection's outbound queue has no room left."""
    def __init__(self, conn_id: str, queue_size: int):
        self.conn_id = conn_id
        self.queue_size = queue_size
        super().__init__(f"Queue full for {conn_id} (size={queue_size})")


class ConnectionQueue:
    """Bounded outbound queue for one connection, drained by a single writer."""

    def __init__(self, conn_id: str, send_fn: SendFn, max_size: int = DEFAULT_MAX_QUEUE_SIZE):
        self.conn_id = conn_id
        self._send_fn = send_fn
        self._max_size = max_size
        self._pending: asyncio.Queue[str] = asyncio.Queue(maxsize=max_size)
        self._writer: asyncio.Task | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once the queue was closed or its writer hit a failed send."""
        return self._closed

    def open(self) -> None:
        """Spawn the writer task."""
        if self._writer is None and not self._closed:
            self._writer = asyncio.create_task(
                self._drain(),
                name=f"outbound_{self.conn_id}"
            )

    def offer(self, message: str) -> bool:
        """
        Enqueue a message without waiting.

        Returns:
            False if the queue is closed

        Raises:
            QueueFullError: If the queue is at capacity
        """
        if self._closed:
            return False
        try:
            self._pending.put_nowait(message)
        except asyncio.QueueFull:
            raise QueueFullError(self.conn_id, self._max_size)
        return True

    async def close(self) -> None:
        """Stop the writer; anything still pending is discarded."""
        self._closed = True
        writer, self._writer = self._writer, None
        if writer is None or writer.done():
            return
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass

    async def _drain(self) -> None:
        while True:
            message = await self._pending.get()
            try:
                await self._send_fn(message)
            except Exception as e:
                logger.warning(f"Send failed for {self.conn_id}, closing its queue: {e}")
                self._closed = True
                return


class ConnectionQueueManager:
    """Owns the outbound queue of every open connection."""

    def __init__(self, max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE):
        self._max_queue_size = max_queue_size
        self._queues: dict[str, ConnectionQueue] = {}

    def register(self, conn_id: str, send_fn: SendFn) -> ConnectionQueue:
        """Create and start the queue for a newly accepted connection."""
        queue = self._queues.get(conn_id)
        if queue is None:
            queue = ConnectionQueue(conn_id, send_fn, self._max_queue_size)
            queue.open()
            self._queues[conn_id] = queue
        return queue

    async def unregister(self, conn_id: str) -> None:
        """Close and forget a connection's queue."""
        queue = self._queues.pop(conn_id, None)
        if queue is not None:
            await queue.close()

    def send(self, conn_id: str, message: str) -> bool:
        """
        Queue a message for a connection.

        Returns:
            True if queued, False if the connection is unknown or its queue is dead

        Raises:
            QueueFullError: If the connection's queue is full
        """
        queue = self._queues.get(conn_id)
        if queue is None:
            return False
        return queue.offer(message)

    async def shutdown(self) -> None:
        """Close every queue."""
        queues = list(self._queues.values())
        self._queues.clear()
        for queue in queues:
            await queue.close()

    def connection_count(self) -> int:
        """Number of registered connections."""
        return len(self._queues)
