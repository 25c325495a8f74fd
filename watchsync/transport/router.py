"""
Connection Router

Thin dispatch layer between the transport and the SessionRegistry.

The transport hands over (conn_id, message) pairs and disconnect
notifications. The router calls the matching registry operation and passes
every notification it returns to a transport-supplied sink. It holds no state
of its own.
"""

import logging
from typing import Awaitable, Callable

from pydantic import ValidationError

from watchsync.protocol import (
    EventType,
    JoinSessionPayload,
    PlaybackEventPayload,
    RelayMessage,
    UNSUPPORTED_EVENT,
    create_error,
)
from watchsync.session import Notification, SessionError, SessionRegistry

logger = logging.getLogger(__name__)

# Delivers one message to one connection
MessageSink = Callable[[str, RelayMessage], Awaitable[None]]


class ConnectionRouter:
    """Routes inbound events from connections to the session registry."""

    def __init__(self, registry: SessionRegistry, sink: MessageSink):
        """
        Initialize the router.

        Args:
            registry: The session registry
            sink: Async callable that delivers a message to a connection
        """
        self._registry = registry
        self._sink = sink

    async def handle_event(self, conn_id: str, message: RelayMessage) -> None:
        """
        Route an inbound event to the appropriate handler.

        Args:
            conn_id: Connection the event came from
            message: The parsed envelope
        """
        handlers = {
            EventType.CREATE_SESSION: self._handle_create_session,
            EventType.JOIN_SESSION: self._handle_join_session,
            EventType.PLAYBACK_EVENT: self._handle_playback_event,
        }

        handler = handlers.get(message.event_type)
        if handler is None:
            logger.warning(f"Unsupported event type from {conn_id}: {message.type!r}")
            await self._sink(conn_id, create_error(UNSUPPORTED_EVENT))
            return

        try:
            notifications = await handler(conn_id, message)
        except SessionError as e:
            await self._sink(conn_id, create_error(e.message))
            return

        await self._deliver(notifications)

    async def handle_disconnect(self, conn_id: str) -> None:
        """Reconcile sessions for a connection the transport reported closed."""
        notifications = await self._registry.handle_disconnect(conn_id)
        await self._deliver(notifications)

    async def _deliver(self, notifications: list[Notification]) -> None:
        for note in notifications:
            await self._sink(note.conn_id, note.message)

    async def _handle_create_session(
        self,
        conn_id: str,
        message: RelayMessage
    ) -> list[Notification]:
        """Handle create_session. Takes no fields."""
        return await self._registry.create_session(conn_id)

    async def _handle_join_session(
        self,
        conn_id: str,
        message: RelayMessage
    ) -> list[Notification]:
        """
        Handle join_session.

        A malformed payload is treated like a missing handle.
        """
        try:
            body = JoinSessionPayload.model_validate(message.payload)
            session_id = body.session_id
        except ValidationError as e:
            logger.debug(f"Malformed join_session from {conn_id}: {e}")
            session_id = None

        return await self._registry.join_session(conn_id, session_id)

    async def _handle_playback_event(
        self,
        conn_id: str,
        message: RelayMessage
    ) -> list[Notification]:
        """Handle playback_event. Malformed payloads are dropped silently."""
        try:
            body = PlaybackEventPayload.model_validate(message.payload)
        except ValidationError as e:
            logger.debug(f"Malformed playback_event from {conn_id}: {e}")
            return []

        return await self._registry.relay_event(
            conn_id,
            body.session_id,
            body.event,
            body.data
        )
