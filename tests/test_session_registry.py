"""
Session registry tests.

Covers the pairing protocol, relay routing and disconnect reconciliation.
"""

import asyncio

import pytest

from watchsync.protocol import EventType
from watchsync.session import (
    AlreadyInSessionError,
    Notification,
    SessionFullError,
    SessionNotFoundError,
    SessionRegistry,
    SessionState,
)


async def create(registry: SessionRegistry, conn_id: str) -> str:
    """Create a session and return its handle."""
    notes = await registry.create_session(conn_id)
    return notes[0].message.payload["sessionId"]


def targets(notes: list[Notification]) -> list[tuple[str, str]]:
    return [(n.conn_id, n.message.type) for n in notes]


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


class TestCreateSession:

    async def test_create_replies_to_requester_only(self, registry):
        notes = await registry.create_session("A")

        assert len(notes) == 1
        assert notes[0].conn_id == "A"
        assert notes[0].message.type == EventType.SESSION_CREATED.value
        session_id = notes[0].message.payload["sessionId"]
        assert len(session_id) == 10

    async def test_created_session_has_host_and_no_guest(self, registry):
        session_id = await create(registry, "A")

        session = await registry.get_session(session_id)
        assert session is not None
        assert session.host_conn_id == "A"
        assert session.guest_conn_id is None
        assert session.state == SessionState.CREATED
        assert registry.session_count == 1

    async def test_handles_are_unique(self, registry):
        ids = {await create(registry, f"conn-{i}") for i in range(200)}
        assert len(ids) == 200

    async def test_bound_connection_cannot_create_again(self, registry):
        session_id = await create(registry, "A")

        with pytest.raises(AlreadyInSessionError) as exc_info:
            await registry.create_session("A")

        assert exc_info.value.session_id == session_id
        assert registry.session_count == 1

    async def test_custom_handle_length(self):
        registry = SessionRegistry(session_id_length=16)
        session_id = await create(registry, "A")
        assert len(session_id) == 16

    def test_rejects_short_handle_length(self):
        with pytest.raises(ValueError):
            SessionRegistry(session_id_length=3)


class TestJoinSession:

    async def test_join_notifies_host_and_joiner_once(self, registry):
        session_id = await create(registry, "A")

        notes = await registry.join_session("B", session_id)

        assert targets(notes) == [
            ("A", EventType.GUEST_JOINED.value),
            ("B", EventType.SESSION_JOINED.value),
        ]
        assert notes[0].message.payload == {}
        assert notes[1].message.payload == {"sessionId": session_id}

        session = await registry.get_session(session_id)
        assert session.guest_conn_id == "B"
        assert session.state == SessionState.PAIRED
        assert session.paired_at is not None

    async def test_join_unknown_session(self, registry):
        await create(registry, "A")

        with pytest.raises(SessionNotFoundError) as exc_info:
            await registry.join_session("B", "doesnotexist")

        assert exc_info.value.message == "Session not found."
        assert registry.session_count == 1
        assert registry.paired_count == 0
        assert await registry.session_for("B") is None

    async def test_join_without_handle(self, registry):
        with pytest.raises(SessionNotFoundError):
            await registry.join_session("B", None)

    async def test_join_full_session_keeps_existing_guest(self, registry):
        session_id = await create(registry, "A")
        await registry.join_session("B", session_id)

        with pytest.raises(SessionFullError) as exc_info:
            await registry.join_session("C", session_id)

        assert exc_info.value.message == "Session is full."
        session = await registry.get_session(session_id)
        assert session.guest_conn_id == "B"
        assert await registry.session_for("C") is None

    async def test_host_cannot_join_own_session(self, registry):
        session_id = await create(registry, "A")

        with pytest.raises(AlreadyInSessionError):
            await registry.join_session("A", session_id)

        session = await registry.get_session(session_id)
        assert session.guest_conn_id is None

    async def test_guest_cannot_join_another_session(self, registry):
        first = await create(registry, "A")
        second = await create(registry, "C")
        await registry.join_session("B", first)

        with pytest.raises(AlreadyInSessionError):
            await registry.join_session("B", second)

        assert (await registry.get_session(second)).guest_conn_id is None

    async def test_bound_connection_joining_unknown_session_gets_not_found(self, registry):
        await create(registry, "A")

        with pytest.raises(SessionNotFoundError) as exc_info:
            await registry.join_session("A", "doesnotexist")

        assert exc_info.value.message == "Session not found."

    async def test_bound_connection_joining_full_session_gets_full(self, registry):
        session_id = await create(registry, "A")
        await registry.join_session("B", session_id)
        own = await create(registry, "C")

        with pytest.raises(SessionFullError) as exc_info:
            await registry.join_session("C", session_id)

        assert exc_info.value.message == "Session is full."
        assert (await registry.session_for("C")).session_id == own
        assert (await registry.get_session(session_id)).guest_conn_id == "B"

    async def test_concurrent_joins_admit_one_guest(self, registry):
        session_id = await create(registry, "A")

        results = await asyncio.gather(
            *(registry.join_session(f"guest-{i}", session_id) for i in range(10)),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 9
        assert all(isinstance(f, SessionFullError) for f in failures)
        assert registry.paired_count == 1


class TestRelayEvent:

    async def paired(self, registry) -> str:
        session_id = await create(registry, "A")
        await registry.join_session("B", session_id)
        return session_id

    async def test_host_to_guest(self, registry):
        session_id = await self.paired(registry)

        notes = await registry.relay_event("A", session_id, "play", {"t": 12})

        assert len(notes) == 1
        assert notes[0].conn_id == "B"
        assert notes[0].message.type == EventType.PLAYBACK_EVENT.value
        assert notes[0].message.payload == {"event": "play", "data": {"t": 12}}

    async def test_guest_to_host(self, registry):
        session_id = await self.paired(registry)

        notes = await registry.relay_event("B", session_id, "seek", 42.5)

        assert targets(notes) == [("A", EventType.PLAYBACK_EVENT.value)]
        assert notes[0].message.payload == {"event": "seek", "data": 42.5}

    async def test_payload_passes_through_untouched(self, registry):
        session_id = await self.paired(registry)
        data = {"nested": [1, {"x": None}], "flag": True}

        notes = await registry.relay_event("A", session_id, {"custom": "name"}, data)

        assert notes[0].message.payload["event"] == {"custom": "name"}
        assert notes[0].message.payload["data"] == data

    async def test_host_alone_is_noop(self, registry):
        session_id = await create(registry, "A")
        assert await registry.relay_event("A", session_id, "play", None) == []

    async def test_outsider_is_noop(self, registry):
        session_id = await self.paired(registry)
        assert await registry.relay_event("C", session_id, "play", None) == []

    async def test_unknown_session_is_noop(self, registry):
        await self.paired(registry)
        assert await registry.relay_event("A", "nope", "play", None) == []
        assert await registry.relay_event("A", None, "play", None) == []


class TestHandleDisconnect:

    async def test_host_leaves_paired_session(self, registry):
        session_id = await create(registry, "A")
        await registry.join_session("B", session_id)

        notes = await registry.handle_disconnect("A")

        assert targets(notes) == [("B", EventType.PARTNER_LEFT.value)]
        assert notes[0].message.payload == {}
        assert await registry.get_session(session_id) is None
        assert registry.session_count == 0
        assert registry.bound_connection_count == 0

        with pytest.raises(SessionNotFoundError):
            await registry.join_session("C", session_id)

    async def test_released_guest_can_create(self, registry):
        session_id = await create(registry, "A")
        await registry.join_session("B", session_id)
        await registry.handle_disconnect("A")

        notes = await registry.create_session("B")
        assert notes[0].conn_id == "B"

    async def test_host_leaves_unpaired_session(self, registry):
        session_id = await create(registry, "A")

        assert await registry.handle_disconnect("A") == []
        assert await registry.get_session(session_id) is None

    async def test_guest_leaves(self, registry):
        session_id = await create(registry, "A")
        await registry.join_session("B", session_id)

        notes = await registry.handle_disconnect("B")

        assert targets(notes) == [("A", EventType.PARTNER_LEFT.value)]
        session = await registry.get_session(session_id)
        assert session.session_id == session_id
        assert session.host_conn_id == "A"
        assert session.guest_conn_id is None
        assert session.state == SessionState.CREATED

    async def test_new_guest_can_join_after_guest_left(self, registry):
        session_id = await create(registry, "A")
        await registry.join_session("B", session_id)
        await registry.handle_disconnect("B")

        notes = await registry.join_session("C", session_id)

        assert targets(notes) == [
            ("A", EventType.GUEST_JOINED.value),
            ("C", EventType.SESSION_JOINED.value),
        ]

    async def test_unbound_connection_is_noop(self, registry):
        session_id = await create(registry, "A")

        assert await registry.handle_disconnect("Z") == []
        assert registry.session_count == 1
        assert (await registry.get_session(session_id)).host_conn_id == "A"

    async def test_repeated_disconnect_is_noop(self, registry):
        session_id = await create(registry, "A")
        await registry.join_session("B", session_id)
        await registry.handle_disconnect("B")

        assert await registry.handle_disconnect("B") == []


class TestQueries:

    async def test_snapshots_do_not_leak_state(self, registry):
        session_id = await create(registry, "A")

        snapshot = await registry.get_session(session_id)
        snapshot.guest_conn_id = "intruder"

        assert (await registry.get_session(session_id)).guest_conn_id is None

    async def test_session_for(self, registry):
        session_id = await create(registry, "A")
        await registry.join_session("B", session_id)

        assert (await registry.session_for("A")).session_id == session_id
        assert (await registry.session_for("B")).session_id == session_id
        assert await registry.session_for("C") is None
