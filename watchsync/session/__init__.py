# Session Registry
# Pairs a host and a guest under one handle and relays events between them

from watchsync.session.session import (
    Session,
    SessionState,
    ParticipantRole,
    generate_session_id,
)
from watchsync.session.errors import (
    SessionError,
    SessionNotFoundError,
    SessionFullError,
    AlreadyInSessionError,
)
from watchsync.session.registry import Notification, SessionRegistry

__all__ = [
    "Session",
    "SessionState",
    "ParticipantRole",
    "generate_session_id",
    "SessionError",
    "SessionNotFoundError",
    "SessionFullError",
    "AlreadyInSessionError",
    "Notification",
    "SessionRegistry",
]
