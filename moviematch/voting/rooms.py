"""
RoomService - Room lifecycle: create, join, leave, start, read.
"""

from datetime import datetime
from typing import Callable

from loguru import logger

from moviematch.datastore import (
    AlreadyExistsError,
    Datastore,
    MembershipRepository,
    RoomRepository,
)
from moviematch.events import EventPublisher
from moviematch.exceptions import NotAMember, NotRoomHost, RoomNotFound, RoomUnavailable
from moviematch.models import Membership, MemberRole, Room, RoomStatus, RoomView
from moviematch.utils import generate_invite_code, new_id, utcnow


class RoomService:
    """Creates rooms and manages memberships."""

    def __init__(
        self,
        store: Datastore,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.publisher = publisher
        self._clock = clock

    async def create_room(self, host_id: str, name: str) -> RoomView:
        now = self._clock()
        room = Room(
            id=new_id(),
            name=name,
            status=RoomStatus.WAITING,
            host_id=host_id,
            invite_code=generate_invite_code(),
            created_at=now,
            updated_at=now,
        )
        async with self.store.session() as session:
            await RoomRepository(session).put(room)
            await MembershipRepository(session).put_if_absent(
                Membership(
                    room_id=room.id,
                    user_id=host_id,
                    role=MemberRole.HOST,
                    is_active=True,
                    joined_at=now,
                )
            )
        logger.info(f"Room created: {room.id} ({name}) by {host_id}")
        return RoomView.from_room(room)

    async def join_room(self, user_id: str, room_id: str) -> RoomView:
        """Join a WAITING room, reactivating an earlier membership if any."""
        now = self._clock()
        async with self.store.session() as session:
            rooms = RoomRepository(session)
            members = MembershipRepository(session)

            room = await rooms.get(room_id)
            if room is None or room.status != RoomStatus.WAITING:
                raise RoomUnavailable("This room is not accepting new members.")

            try:
                await members.put_if_absent(
                    Membership(room_id=room_id, user_id=user_id, joined_at=now)
                )
                rejoined = False
            except AlreadyExistsError:
                await members.set_active(room_id, user_id, True, now)
                rejoined = True

            await rooms.touch(room_id, now)
            active = await members.count_active(room_id)
            room = await rooms.get(room_id)

        logger.info(
            f"User {user_id} joined room {room_id}"
            + (" (rejoined)" if rejoined else "")
        )
        await self.publisher.publish_member_update(room_id, user_id, "JOINED", active)
        return RoomView.from_room(room)

    async def leave_room(self, user_id: str, room_id: str) -> RoomView:
        """Deactivate the caller's membership. Records are never deleted."""
        now = self._clock()
        async with self.store.session() as session:
            rooms = RoomRepository(session)
            members = MembershipRepository(session)

            room = await rooms.get(room_id)
            if room is None:
                raise RoomNotFound()
            membership = await members.get(room_id, user_id)
            if membership is None or not membership.is_active:
                raise NotAMember()

            await members.set_active(room_id, user_id, False)
            await rooms.touch(room_id, now)
            active = await members.count_active(room_id)
            room = await rooms.get(room_id)

        logger.info(f"User {user_id} left room {room_id}")
        await self.publisher.publish_member_update(room_id, user_id, "LEFT", active)
        return RoomView.from_room(room)

    async def start_room(self, user_id: str, room_id: str) -> RoomView:
        """Host closes the lobby: WAITING -> ACTIVE."""
        async with self.store.session() as session:
            rooms = RoomRepository(session)
            room = await rooms.get(room_id)
            if room is None:
                raise RoomNotFound()
            if room.host_id != user_id:
                raise NotRoomHost()
            if not await rooms.activate(room_id, self._clock()):
                raise RoomUnavailable("Only a waiting room can be started.")
            room = await rooms.get(room_id)

        logger.info(f"Room {room_id} started by host {user_id}")
        return RoomView.from_room(room)

    async def get_room(self, user_id: str, room_id: str) -> RoomView:
        async with self.store.session() as session:
            room = await RoomRepository(session).get(room_id)
            if room is None:
                raise RoomNotFound()
            if await MembershipRepository(session).get(room_id, user_id) is None:
                raise NotAMember("You do not have access to this room.")
        return RoomView.from_room(room)

    async def list_user_rooms(self, user_id: str) -> list[RoomView]:
        """Rooms the user has ever belonged to, most recently joined first."""
        async with self.store.session() as session:
            rooms = RoomRepository(session)
            memberships = await MembershipRepository(session).list_for_user(user_id)
            views = []
            for membership in memberships:
                room = await rooms.get(membership.room_id)
                if room is not None:
                    views.append(RoomView.from_room(room))
        return views
