# watchsync - Two-party session relay for synchronized playback
# Pairs a host and a guest under a shared handle and forwards their events

__version__ = "0.1.0"

# Re-export commonly used components for convenience
from watchsync.session import (
    Session,
    SessionState,
    SessionRegistry,
    SessionError,
    SessionNotFoundError,
    SessionFullError,
    AlreadyInSessionError,
)

__all__ = [
    "__version__",
    "Session",
    "SessionState",
    "SessionRegistry",
    "SessionError",
    "SessionNotFoundError",
    "SessionFullError",
    "AlreadyInSessionError",
]
