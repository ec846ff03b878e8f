"""
Repository layer - the store primitives the engines are built on.

Correctness-critical writes are single statements:
- conditional create-if-absent: INSERT ... ON CONFLICT DO NOTHING RETURNING
- atomic increment: INSERT ... ON CONFLICT DO UPDATE SET count = count + 1
A read followed by a write is never used in their place.
"""

from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from moviematch.datastore.errors import AlreadyExistsError
from moviematch.datastore.models import (
    CacheEntryDB,
    MembershipDB,
    RoomDB,
    VoteReceiptDB,
    VoteTallyDB,
)
from moviematch.models import Membership, MemberRole, Room, RoomStatus, VoteTally


def _insert(session: AsyncSession, model):
    """Dialect-specific INSERT supporting ON CONFLICT."""
    if session.bind.dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)


class RoomRepository:
    """Rooms Repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, room_id: str) -> Room | None:
        row = await self.session.get(RoomDB, room_id)
        if row is None:
            return None
        return _to_room(row)

    async def put(self, room: Room) -> None:
        self.session.add(
            RoomDB(
                id=room.id,
                name=room.name,
                status=room.status.value,
                host_id=room.host_id,
                result_media_id=room.result_media_id,
                invite_code=room.invite_code,
                created_at=room.created_at,
                updated_at=room.updated_at,
            )
        )
        await self.session.flush()

    async def touch(self, room_id: str, now: datetime) -> None:
        await self.session.execute(
            update(RoomDB).where(RoomDB.id == room_id).values(updated_at=now)
        )

    async def activate(self, room_id: str, now: datetime) -> bool:
        """WAITING -> ACTIVE. Returns False if the room was not WAITING."""
        result = await self.session.execute(
            update(RoomDB)
            .where(RoomDB.id == room_id, RoomDB.status == RoomStatus.WAITING.value)
            .values(status=RoomStatus.ACTIVE.value, updated_at=now)
        )
        return result.rowcount == 1

    async def mark_matched(self, room_id: str, media_id: str, now: datetime) -> bool:
        """
        Transition the room to MATCHED with the given result.

        Conditional on the room not already being MATCHED, so the first
        media to reach consensus wins. Returns True if this call won.
        """
        result = await self.session.execute(
            update(RoomDB)
            .where(RoomDB.id == room_id, RoomDB.status != RoomStatus.MATCHED.value)
            .values(
                status=RoomStatus.MATCHED.value,
                result_media_id=media_id,
                updated_at=now,
            )
        )
        return result.rowcount == 1


class MembershipRepository:
    """Room members Repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, room_id: str, user_id: str) -> Membership | None:
        row = await self.session.get(MembershipDB, (room_id, user_id))
        if row is None:
            return None
        return _to_membership(row)

    async def put_if_absent(self, membership: Membership) -> None:
        stmt = (
            _insert(self.session, MembershipDB)
            .values(
                room_id=membership.room_id,
                user_id=membership.user_id,
                role=membership.role.value,
                is_active=membership.is_active,
                joined_at=membership.joined_at,
            )
            .on_conflict_do_nothing(
                index_elements=[MembershipDB.room_id, MembershipDB.user_id]
            )
            .returning(MembershipDB.user_id)
        )
        result = await self.session.execute(stmt)
        if result.first() is None:
            raise AlreadyExistsError(
                "Membership", f"{membership.room_id}/{membership.user_id}"
            )

    async def set_active(
        self, room_id: str, user_id: str, active: bool, now: datetime | None = None
    ) -> bool:
        values: dict = {"is_active": active}
        if active and now is not None:
            values["joined_at"] = now
        result = await self.session.execute(
            update(MembershipDB)
            .where(MembershipDB.room_id == room_id, MembershipDB.user_id == user_id)
            .values(**values)
        )
        return result.rowcount == 1

    async def count_active(self, room_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(MembershipDB)
            .where(MembershipDB.room_id == room_id, MembershipDB.is_active.is_(True))
        )
        return result.scalar_one()

    async def list_active_user_ids(self, room_id: str) -> list[str]:
        result = await self.session.execute(
            select(MembershipDB.user_id)
            .where(MembershipDB.room_id == room_id, MembershipDB.is_active.is_(True))
            .order_by(MembershipDB.joined_at)
        )
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str) -> list[Membership]:
        result = await self.session.execute(
            select(MembershipDB)
            .where(MembershipDB.user_id == user_id)
            .order_by(MembershipDB.joined_at.desc())
        )
        return [_to_membership(row) for row in result.scalars().all()]


class VoteReceiptRepository:
    """Vote receipts Repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def put_if_absent(
        self, user_id: str, room_id: str, media_id: str, now: datetime
    ) -> None:
        """Record a vote receipt, raising AlreadyExistsError on a repeat."""
        stmt = (
            _insert(self.session, VoteReceiptDB)
            .values(user_id=user_id, room_id=room_id, media_id=media_id, voted_at=now)
            .on_conflict_do_nothing(
                index_elements=[
                    VoteReceiptDB.user_id,
                    VoteReceiptDB.room_id,
                    VoteReceiptDB.media_id,
                ]
            )
            .returning(VoteReceiptDB.user_id)
        )
        result = await self.session.execute(stmt)
        if result.first() is None:
            raise AlreadyExistsError("VoteReceipt", f"{user_id}/{room_id}_{media_id}")


class VoteTallyRepository:
    """Vote tallies Repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def increment(self, room_id: str, media_id: str, now: datetime) -> int:
        """Create the tally at 1 or add 1 to it, in one statement."""
        stmt = _insert(self.session, VoteTallyDB).values(
            room_id=room_id, media_id=media_id, count=1, updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[VoteTallyDB.room_id, VoteTallyDB.media_id],
            set_={"count": VoteTallyDB.count + 1, "updated_at": now},
        ).returning(VoteTallyDB.count)
        result = await self.session.execute(stmt)
        count = result.scalar_one()
        logger.debug(f"Tally {room_id}/{media_id} -> {count}")
        return count

    async def get(self, room_id: str, media_id: str) -> VoteTally | None:
        row = await self.session.get(VoteTallyDB, (room_id, media_id))
        if row is None:
            return None
        return VoteTally(
            room_id=row.room_id,
            media_id=row.media_id,
            count=row.count,
            updated_at=row.updated_at,
        )


@dataclass
class StoredCacheEntry:
    """Raw cache row as read from the store."""

    key: str
    payload: str
    cached_at: datetime
    expires_at: datetime


class CacheEntryRepository:
    """Catalog cache Repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key: str) -> StoredCacheEntry | None:
        """Return the entry regardless of expiry; freshness is the caller's call."""
        row = await self.session.get(CacheEntryDB, key)
        if row is None:
            return None
        return StoredCacheEntry(
            key=row.key,
            payload=row.payload,
            cached_at=row.cached_at,
            expires_at=row.expires_at,
        )

    async def put(
        self, key: str, payload: str, cached_at: datetime, expires_at: datetime
    ) -> None:
        stmt = _insert(self.session, CacheEntryDB).values(
            key=key, payload=payload, cached_at=cached_at, expires_at=expires_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CacheEntryDB.key],
            set_={
                "payload": payload,
                "cached_at": cached_at,
                "expires_at": expires_at,
            },
        )
        await self.session.execute(stmt)


def _to_room(row: RoomDB) -> Room:
    return Room(
        id=row.id,
        name=row.name,
        status=RoomStatus(row.status),
        host_id=row.host_id,
        result_media_id=row.result_media_id,
        invite_code=row.invite_code,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_membership(row: MembershipDB) -> Membership:
    return Membership(
        room_id=row.room_id,
        user_id=row.user_id,
        role=MemberRole(row.role),
        is_active=row.is_active,
        joined_at=row.joined_at,
    )
