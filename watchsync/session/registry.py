"""
Session Registry

Owns every live session and the binding of connections to sessions.
Implements the pairing protocol (create, join), the relay protocol and
disconnect reconciliation. It is the only component that mutates session
state.

Operations never send anything themselves. Each one returns the list of
notifications it produced; the caller delivers them after the registry lock
has been released.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from watchsync.protocol import (
    RelayMessage,
    create_guest_joined,
    create_partner_left,
    create_playback_event,
    create_session_created,
    create_session_joined,
)
from watchsync.session.errors import (
    AlreadyInSessionError,
    SessionFullError,
    SessionNotFoundError,
)
from watchsync.session.session import (
    DEFAULT_SESSION_ID_LENGTH,
    MIN_SESSION_ID_LENGTH,
    ParticipantRole,
    Session,
    SessionState,
    generate_session_id,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """One outbound message addressed to one connection."""
    conn_id: str
    message: RelayMessage


class SessionRegistry:
    """
    In-memory mapping from session handle to Session.

    Thread-safe for async operations using a single asyncio lock that covers
    both indexes.
    """

    def __init__(self, session_id_length: int = DEFAULT_SESSION_ID_LENGTH):
        """
        Initialize the registry.

        Args:
            session_id_length: Length of generated session handles
        """
        if session_id_length < MIN_SESSION_ID_LENGTH:
            raise ValueError(
                f"session_id_length must be at least {MIN_SESSION_ID_LENGTH}"
            )
        self._session_id_length = session_id_length

        # Primary index: session_id -> Session
        self._sessions: dict[str, Session] = {}

        # Secondary index: conn_id -> session_id (host or guest)
        self._session_by_conn: dict[str, str] = {}

        self._lock = asyncio.Lock()

    def _new_session_id(self) -> str:
        """Generate a handle that no live session uses (must hold lock)."""
        while True:
            session_id = generate_session_id(self._session_id_length)
            if session_id not in self._sessions:
                return session_id
            logger.debug(f"Session id collision on {session_id}, regenerating")

    async def create_session(self, conn_id: str) -> list[Notification]:
        """
        Create a session hosted by `conn_id`.

        Returns:
            session_created for the requester

        Raises:
            AlreadyInSessionError: If the connection is already bound
        """
        async with self._lock:
            bound = self._session_by_conn.get(conn_id)
            if bound is not None:
                logger.warning(
                    f"Create rejected: {conn_id} is already bound to session {bound}"
                )
                raise AlreadyInSessionError(conn_id, bound)

            session = Session(
                session_id=self._new_session_id(),
                host_conn_id=conn_id,
            )
            self._sessions[session.session_id] = session
            self._session_by_conn[conn_id] = session.session_id

        logger.info(f"Session created: {session.session_id} (host: {conn_id})")

        return [Notification(conn_id, create_session_created(session.session_id))]

    async def join_session(
        self,
        conn_id: str,
        session_id: str | None
    ) -> list[Notification]:
        """
        Bind `conn_id` as the guest of a session.

        Returns:
            guest_joined for the host, session_joined for the requester

        Raises:
            SessionNotFoundError: If no live session has this handle
            SessionFullError: If the session already has a guest
            AlreadyInSessionError: If the connection is already bound
        """
        async with self._lock:
            session = self._sessions.get(session_id) if session_id else None
            if session is None:
                logger.warning(f"Join rejected: session {session_id} not found")
                raise SessionNotFoundError(session_id)

            if session.has_guest:
                logger.warning(f"Join rejected: session {session_id} is full")
                raise SessionFullError(session_id)

            bound = self._session_by_conn.get(conn_id)
            if bound is not None:
                logger.warning(
                    f"Join rejected: {conn_id} is already bound to session {bound}"
                )
                raise AlreadyInSessionError(conn_id, bound)

            session.attach_guest(conn_id)
            self._session_by_conn[conn_id] = session.session_id
            host_conn_id = session.host_conn_id

        logger.info(f"Session joined: {session_id} (guest: {conn_id})")

        return [
            Notification(host_conn_id, create_guest_joined()),
            Notification(conn_id, create_session_joined(session.session_id)),
        ]

    async def relay_event(
        self,
        conn_id: str,
        session_id: str | None,
        event: Any,
        data: Any
    ) -> list[Notification]:
        """
        Forward a playback event to the sender's counterpart.

        Silent no-op when the session is unknown, the sender is not one of its
        participants, or the other side is empty.

        Returns:
            At most one playback_event notification
        """
        async with self._lock:
            session = self._sessions.get(session_id) if session_id else None
            if session is None:
                logger.debug(f"Relay dropped: session {session_id} not found")
                return []

            target = session.counterpart_of(conn_id)

        if target is None:
            logger.debug(f"Relay dropped: no counterpart for {conn_id} in {session_id}")
            return []

        logger.debug(f"Relaying {event!r} in {session_id}: {conn_id} -> {target}")
        return [Notification(target, create_playback_event(event, data))]

    async def handle_disconnect(self, conn_id: str) -> list[Notification]:
        """
        Reconcile state after a connection went away.

        Host leaving destroys the session and releases the guest. Guest leaving
        clears the guest slot and keeps the session alive for a new guest.

        Returns:
            partner_left for the remaining participant, if any
        """
        async with self._lock:
            session_id = self._session_by_conn.pop(conn_id, None)
            if session_id is None:
                return []

            session = self._sessions.get(session_id)
            if session is None:
                return []

            role = session.role_of(conn_id)
            other = session.counterpart_of(conn_id)

            if role == ParticipantRole.HOST:
                del self._sessions[session_id]
                if session.guest_conn_id is not None:
                    self._session_by_conn.pop(session.guest_conn_id, None)
                logger.info(f"Session destroyed: {session_id} (host {conn_id} left)")
            else:
                session.detach_guest()
                logger.info(f"Guest left session {session_id}: {conn_id}")
                logger.debug(f"Session state: {session.to_summary_dict()}")

        if other is None:
            return []
        return [Notification(other, create_partner_left())]

    async def get_session(self, session_id: str) -> Session | None:
        """Get a snapshot of a session by handle."""
        async with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy() if session else None

    async def session_for(self, conn_id: str) -> Session | None:
        """Get a snapshot of the session a connection is bound to."""
        async with self._lock:
            session_id = self._session_by_conn.get(conn_id)
            if session_id is None:
                return None
            session = self._sessions.get(session_id)
            return session.model_copy() if session else None

    @property
    def session_count(self) -> int:
        """Number of live sessions."""
        return len(self._sessions)

    @property
    def paired_count(self) -> int:
        """Number of sessions with a guest bound."""
        return sum(
            1 for s in self._sessions.values()
            if s.state == SessionState.PAIRED
        )

    @property
    def bound_connection_count(self) -> int:
        """Number of connections bound to a session as host or guest."""
        return len(self._session_by_conn)
