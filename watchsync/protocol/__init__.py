# Relay Protocol
# Message envelope, event kinds and outbound message constructors

from watchsync.protocol.messages import (
    EventType,
    RelayMessage,
    JoinSessionPayload,
    PlaybackEventPayload,
    SESSION_NOT_FOUND,
    SESSION_FULL,
    ALREADY_IN_SESSION,
    UNSUPPORTED_EVENT,
    INVALID_MESSAGE,
    create_session_created,
    create_session_joined,
    create_guest_joined,
    create_partner_left,
    create_playback_event,
    create_error,
)

__all__ = [
    "EventType",
    "RelayMessage",
    "JoinSessionPayload",
    "PlaybackEventPayload",
    "SESSION_NOT_FOUND",
    "SESSION_FULL",
    "ALREADY_IN_SESSION",
    "UNSUPPORTED_EVENT",
    "INVALID_MESSAGE",
    "create_session_created",
    "create_session_joined",
    "create_guest_joined",
    "create_partner_left",
    "create_playback_event",
    "create_error",
]
