"""
Session Errors

Expected, recoverable admission failures. Each carries the message that is
reported back to the requesting connection.
"""

from watchsync.protocol import ALREADY_IN_SESSION, SESSION_FULL, SESSION_NOT_FOUND


class SessionError(Exception):
    """Base class for admission failures reported to the requester."""
    message: str = "Session error."

    def __init__(self, session_id: str | None = None):
        self.session_id = session_id
        super().__init__(self.message)


class SessionNotFoundError(SessionError):
    """Raised when no live session has the requested handle."""
    message = SESSION_NOT_FOUND


class SessionFullError(SessionError):
    """Raised when the requested session already has a guest."""
    message = SESSION_FULL


class AlreadyInSessionError(SessionError):
    """Raised when a bound connection tries to create or join another session."""
    message = ALREADY_IN_SESSION

    def __init__(self, conn_id: str, session_id: str | None = None):
        self.conn_id = conn_id
        super().__init__(session_id)
