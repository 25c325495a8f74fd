"""
Session Model

Represents one pairing opportunity between a host and a guest.

Session Lifecycle:
1. CREATED - Host connected, waiting for a guest
2. PAIRED  - Guest joined, playback events are relayed both ways

A guest leaving returns the session to CREATED under the same handle.
The host leaving destroys the session; there is no stored terminal state,
the entry is simply removed from the registry.
"""

import secrets
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

# URL-safe alphabet, 64 symbols
SESSION_ID_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "0123456789_-"
)
DEFAULT_SESSION_ID_LENGTH = 10
MIN_SESSION_ID_LENGTH = 6


def generate_session_id(length: int = DEFAULT_SESSION_ID_LENGTH) -> str:
    """Return a random, unguessable session handle."""
    if length < MIN_SESSION_ID_LENGTH:
        raise ValueError(
            f"Session id length must be at least {MIN_SESSION_ID_LENGTH}, got {length}"
        )
    return "".join(secrets.choice(SESSION_ID_ALPHABET) for _ in range(length))


class SessionState(str, Enum):
    """Session lifecycle states."""
    CREATED = "created"  # Host only
    PAIRED = "paired"    # Host and guest bound


class ParticipantRole(str, Enum):
    """Role a connection plays in a session."""
    HOST = "host"
    GUEST = "guest"


class Session(BaseModel):
    """
    A host/guest pairing.

    Connections are referenced by their transport-assigned ids only.
    """

    # === Identity ===
    session_id: str = Field(
        ...,
        description="Opaque handle shared by both participants"
    )

    # === Participants ===
    host_conn_id: str = Field(
        ...,
        description="Connection that created the session"
    )
    guest_conn_id: str | None = Field(
        default=None,
        description="Connection that joined the session, if any"
    )

    # === Lifecycle ===
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the session was created"
    )
    paired_at: datetime | None = Field(
        default=None,
        description="When the current guest joined"
    )

    @property
    def state(self) -> SessionState:
        """Current lifecycle state, derived from the guest binding."""
        if self.guest_conn_id is None:
            return SessionState.CREATED
        return SessionState.PAIRED

    @property
    def has_guest(self) -> bool:
        return self.guest_conn_id is not None

    def role_of(self, conn_id: str) -> ParticipantRole | None:
        """Return the role of a connection in this session, if it has one."""
        if conn_id == self.host_conn_id:
            return ParticipantRole.HOST
        if self.guest_conn_id is not None and conn_id == self.guest_conn_id:
            return ParticipantRole.GUEST
        return None

    def counterpart_of(self, conn_id: str) -> str | None:
        """
        Return the connection on the other side of `conn_id`.

        None if `conn_id` is not a participant or the other side is empty.
        """
        role = self.role_of(conn_id)
        if role == ParticipantRole.HOST:
            return self.guest_conn_id
        if role == ParticipantRole.GUEST:
            return self.host_conn_id
        return None

    def attach_guest(self, conn_id: str) -> None:
        """Bind a guest connection."""
        self.guest_conn_id = conn_id
        self.paired_at = datetime.utcnow()

    def detach_guest(self) -> None:
        """Clear the guest binding, keeping host and handle."""
        self.guest_conn_id = None
        self.paired_at = None

    def to_summary_dict(self) -> dict[str, str | None]:
        """Return a summary for logging/debugging."""
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "host": self.host_conn_id,
            "guest": self.guest_conn_id,
        }
