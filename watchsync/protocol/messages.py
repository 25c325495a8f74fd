"""
Relay Message Envelope

Every frame exchanged with a participant uses the same small envelope:

    {"type": "<event kind>", "payload": {...}}

The envelope carries only what the relay needs for routing. Playback
payloads are opaque and are passed through without inspection.

Inbound kinds (participant -> relay):
- create_session
- join_session      {sessionId}
- playback_event    {sessionId, event, data}

Outbound kinds (relay -> participant):
- session_created   {sessionId}
- session_joined    {sessionId}
- guest_joined      {}
- playback_event    {event, data}
- partner_left      {}
- error             {message}
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Event kinds understood by the relay."""
    # Inbound
    CREATE_SESSION = "create_session"
    JOIN_SESSION = "join_session"
    PLAYBACK_EVENT = "playback_event"  # Also outbound, to the counterpart

    # Outbound
    SESSION_CREATED = "session_created"
    SESSION_JOINED = "session_joined"
    GUEST_JOINED = "guest_joined"
    PARTNER_LEFT = "partner_left"
    ERROR = "error"


# Client-facing error messages
SESSION_NOT_FOUND = "Session not found."
SESSION_FULL = "Session is full."
ALREADY_IN_SESSION = "Connection is already in a session."
UNSUPPORTED_EVENT = "Unsupported event type."
INVALID_MESSAGE = "Invalid message."


class RelayMessage(BaseModel):
    """
    The envelope for all relay traffic.

    `type` is kept as a plain string so that unknown inbound kinds still
    parse and can be answered with an error instead of a validation failure.
    """
    type: str = Field(
        ...,
        description="Event kind, see EventType"
    )
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Event fields. Structure depends on type."
    )

    @property
    def event_type(self) -> EventType | None:
        """The parsed event kind, or None if the kind is unknown."""
        try:
            return EventType(self.type)
        except ValueError:
            return None


class JoinSessionPayload(BaseModel):
    """Fields of an inbound join_session event."""
    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(
        default=None,
        alias="sessionId",
        description="Handle of the session to join"
    )


class PlaybackEventPayload(BaseModel):
    """
    Fields of an inbound playback_event.

    `event` and `data` are opaque: any JSON value is accepted and forwarded as is.
    """
    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(
        default=None,
        alias="sessionId",
        description="Handle of the session the event belongs to"
    )
    event: Any = Field(
        default=None,
        description="Application event name (play, pause, seek, ...)"
    )
    data: Any = Field(
        default=None,
        description="Application event data"
    )


# === Convenience constructors for outbound messages ===

def create_session_created(session_id: str) -> RelayMessage:
    """Reply to the creator of a session."""
    return RelayMessage(
        type=EventType.SESSION_CREATED.value,
        payload={"sessionId": session_id}
    )


def create_session_joined(session_id: str) -> RelayMessage:
    """Reply to a connection that joined a session."""
    return RelayMessage(
        type=EventType.SESSION_JOINED.value,
        payload={"sessionId": session_id}
    )


def create_guest_joined() -> RelayMessage:
    """Tell a host that a guest joined its session."""
    return RelayMessage(type=EventType.GUEST_JOINED.value)


def create_partner_left() -> RelayMessage:
    """Tell the remaining participant that the other one disconnected."""
    return RelayMessage(type=EventType.PARTNER_LEFT.value)


def create_playback_event(event: Any, data: Any) -> RelayMessage:
    """Forward a playback event to the counterpart, fields untouched."""
    return RelayMessage(
        type=EventType.PLAYBACK_EVENT.value,
        payload={"event": event, "data": data}
    )


def create_error(message: str) -> RelayMessage:
    """Error reply addressed to the requester only."""
    return RelayMessage(
        type=EventType.ERROR.value,
        payload={"message": message}
    )
