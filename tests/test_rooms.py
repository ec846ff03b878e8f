"""
Tests for room lifecycle operations.
"""

import pytest

from moviematch.exceptions import NotAMember, NotRoomHost, RoomNotFound, RoomUnavailable
from moviematch.models import RoomStatus
from moviematch.utils import INVITE_ALPHABET
from moviematch.voting import RoomService, VoteEngine


@pytest.fixture
def rooms(store, publisher, clock) -> RoomService:
    return RoomService(store, publisher, clock=clock)


class TestCreateAndJoin:
    """Tests for create_room / join_room."""

    @pytest.mark.asyncio
    async def test_create_room(self, rooms):
        view = await rooms.create_room("host", "Friday night")

        assert view.status == RoomStatus.WAITING
        assert view.host_id == "host"
        assert view.name == "Friday night"
        assert len(view.invite_code) == 6
        assert set(view.invite_code) <= set(INVITE_ALPHABET)

    @pytest.mark.asyncio
    async def test_host_is_member(self, rooms):
        view = await rooms.create_room("host", "Friday night")

        fetched = await rooms.get_room("host", view.id)

        assert fetched.id == view.id

    @pytest.mark.asyncio
    async def test_join_publishes_member_update(self, rooms, transport):
        view = await rooms.create_room("host", "Friday night")

        await rooms.join_room("u1", view.id)

        events = transport.of_type("MEMBER_UPDATE")
        assert len(events) == 1
        assert events[0].payload.action == "JOINED"
        assert events[0].payload.active_members == 2

    @pytest.mark.asyncio
    async def test_rejoin_reactivates(self, rooms, transport):
        view = await rooms.create_room("host", "Friday night")
        await rooms.join_room("u1", view.id)
        await rooms.leave_room("u1", view.id)

        await rooms.join_room("u1", view.id)

        last = transport.of_type("MEMBER_UPDATE")[-1]
        assert last.payload.action == "JOINED"
        assert last.payload.active_members == 2

    @pytest.mark.asyncio
    async def test_join_twice_is_idempotent(self, rooms, transport):
        view = await rooms.create_room("host", "Friday night")
        await rooms.join_room("u1", view.id)
        await rooms.join_room("u1", view.id)

        assert transport.of_type("MEMBER_UPDATE")[-1].payload.active_members == 2

    @pytest.mark.asyncio
    async def test_cannot_join_started_room(self, rooms):
        view = await rooms.create_room("host", "Friday night")
        await rooms.start_room("host", view.id)

        with pytest.raises(RoomUnavailable):
            await rooms.join_room("u1", view.id)

    @pytest.mark.asyncio
    async def test_cannot_join_missing_room(self, rooms):
        with pytest.raises(RoomUnavailable):
            await rooms.join_room("u1", "missing")


class TestLeaveAndStart:
    """Tests for leave_room / start_room."""

    @pytest.mark.asyncio
    async def test_leave_requires_active_membership(self, rooms):
        view = await rooms.create_room("host", "Friday night")

        with pytest.raises(NotAMember):
            await rooms.leave_room("stranger", view.id)

    @pytest.mark.asyncio
    async def test_leave_missing_room(self, rooms):
        with pytest.raises(RoomNotFound):
            await rooms.leave_room("u1", "missing")

    @pytest.mark.asyncio
    async def test_leave_publishes_member_update(self, rooms, transport):
        view = await rooms.create_room("host", "Friday night")
        await rooms.join_room("u1", view.id)

        await rooms.leave_room("u1", view.id)

        last = transport.of_type("MEMBER_UPDATE")[-1]
        assert last.payload.action == "LEFT"
        assert last.payload.active_members == 1

    @pytest.mark.asyncio
    async def test_only_host_can_start(self, rooms):
        view = await rooms.create_room("host", "Friday night")
        await rooms.join_room("u1", view.id)

        with pytest.raises(NotRoomHost):
            await rooms.start_room("u1", view.id)

    @pytest.mark.asyncio
    async def test_start_twice_rejected(self, rooms):
        view = await rooms.create_room("host", "Friday night")

        started = await rooms.start_room("host", view.id)
        assert started.status == RoomStatus.ACTIVE

        with pytest.raises(RoomUnavailable):
            await rooms.start_room("host", view.id)


class TestReads:
    """Tests for get_room / list_user_rooms."""

    @pytest.mark.asyncio
    async def test_get_room_requires_membership(self, rooms):
        view = await rooms.create_room("host", "Friday night")

        with pytest.raises(NotAMember):
            await rooms.get_room("stranger", view.id)

    @pytest.mark.asyncio
    async def test_former_member_can_still_read(self, rooms):
        view = await rooms.create_room("host", "Friday night")
        await rooms.join_room("u1", view.id)
        await rooms.leave_room("u1", view.id)

        assert (await rooms.get_room("u1", view.id)).id == view.id

    @pytest.mark.asyncio
    async def test_get_missing_room(self, rooms):
        with pytest.raises(RoomNotFound):
            await rooms.get_room("host", "missing")

    @pytest.mark.asyncio
    async def test_list_user_rooms(self, rooms, clock, store, publisher):
        first = await rooms.create_room("host", "First")
        clock.advance(minutes=1)
        second = await rooms.create_room("host", "Second")
        await VoteEngine(store, publisher).cast_vote("host", first.id, "603")

        listed = await rooms.list_user_rooms("host")

        assert [v.id for v in listed] == [second.id, first.id]
        assert listed[1].status == RoomStatus.MATCHED
        assert await rooms.list_user_rooms("nobody") == []
