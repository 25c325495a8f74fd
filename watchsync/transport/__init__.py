# Transport Layer
# Handles WebSocket connections, outbound queues and event routing
# Separated from session logic to allow alternative transports in the future

from watchsync.transport.router import ConnectionRouter, MessageSink
from watchsync.transport.queue import ConnectionQueueManager, QueueFullError
from watchsync.transport.handler import WebSocketHandler
from watchsync.transport.app import create_app

__all__ = [
    "ConnectionRouter",
    "MessageSink",
    "ConnectionQueueManager",
    "QueueFullError",
    "WebSocketHandler",
    "create_app",
]
