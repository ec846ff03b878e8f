"""
Tests for room event types and the best-effort publisher.
"""

from unittest.mock import AsyncMock

import pytest

from moviematch.events import (
    EventPublisher,
    EventType,
    MatchFound,
    RoomEvent,
    VoteProgress,
    VoteUpdate,
)


class TestVoteProgress:
    def test_compute(self):
        progress = VoteProgress.compute(2, 4)

        assert progress.total_votes == 2
        assert progress.remaining_users == 2
        assert progress.percentage == 50.0

    def test_no_members(self):
        assert VoteProgress.compute(0, 0).percentage == 0


class TestRoomEvent:
    """The envelope always carries exactly one typed payload."""

    def test_event_type_follows_payload(self):
        event = RoomEvent(
            room_id="room-1",
            payload=MatchFound(
                match_id="match_room-1_603",
                media_id="603",
                media_title="The Matrix",
                participants=["a", "b"],
            ),
        )

        assert event.event_type == EventType.MATCH_FOUND
        assert event.id
        assert event.model_dump(mode="json")["event_type"] == "MATCH_FOUND"

    def test_serialized_event_parses_back_to_same_payload_type(self):
        event = RoomEvent(
            room_id="room-1",
            payload=VoteUpdate(
                user_id="u1",
                media_id="603",
                progress=VoteProgress.compute(1, 3),
            ),
        )

        parsed = RoomEvent.model_validate_json(event.model_dump_json())

        assert isinstance(parsed.payload, VoteUpdate)
        assert parsed.payload.progress.remaining_users == 2


class TestEventPublisher:
    """Publication is fire-and-forget."""

    @pytest.mark.asyncio
    async def test_publishes_to_transport_and_audit(self, metrics):
        transport, audit = AsyncMock(), AsyncMock()
        publisher = EventPublisher(transport=transport, audit=audit, metrics=metrics)

        event = await publisher.publish_member_update("room-1", "u1", "JOINED", 2)

        transport.publish.assert_awaited_once_with(event)
        audit.record.assert_awaited_once_with(event)
        metrics.event.assert_called_once_with("MEMBER_UPDATE", "ok")

    @pytest.mark.asyncio
    async def test_transport_error_swallowed(self, metrics):
        transport, audit = AsyncMock(), AsyncMock()
        transport.publish.side_effect = ConnectionError("down")
        publisher = EventPublisher(transport=transport, audit=audit, metrics=metrics)

        result = await publisher.publish_vote_update("room-1", "u1", "603", 1, 3)

        assert result is None
        audit.record.assert_awaited_once()
        metrics.event.assert_called_once_with("VOTE_UPDATE", "error")

    @pytest.mark.asyncio
    async def test_audit_error_swallowed(self, metrics):
        transport, audit = AsyncMock(), AsyncMock()
        audit.record.side_effect = RuntimeError("disk full")
        publisher = EventPublisher(transport=transport, audit=audit, metrics=metrics)

        event = await publisher.publish_match_found("room-1", "603", "The Matrix", ["u1"])

        assert event is not None
        assert event.payload.match_id == "match_room-1_603"

    @pytest.mark.asyncio
    async def test_default_sinks_log_only(self, metrics):
        publisher = EventPublisher(metrics=metrics)

        event = await publisher.publish_member_update("room-1", "u1", "LEFT", 0)

        assert event is not None
        await publisher.close()
