"""
Database models.

SQLAlchemy 2.0 declarative mapping. Each table's primary key is the
logical key the engines address records by, so conditional creates
(`ON CONFLICT DO NOTHING`) and atomic increments (`ON CONFLICT DO UPDATE`)
hit exactly one row.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from moviematch.utils import utcnow


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all models"""

    pass


class RoomDB(Base):
    """Rooms table"""

    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    host_id: Mapped[str] = mapped_column(String(255), nullable=False)
    result_media_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    invite_code: Mapped[str] = mapped_column(String(16), default="", index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, status={self.status})>"


class MembershipDB(Base):
    """Room members table, never deleted from, only deactivated"""

    __tablename__ = "room_members"

    room_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    # Lookup of a user's rooms
    __table_args__ = (Index("idx_member_user", "user_id"),)

    def __repr__(self) -> str:
        return f"<Membership(room={self.room_id}, user={self.user_id})>"


class VoteTallyDB(Base):
    """Per-room, per-media like counters"""

    __tablename__ = "vote_tallies"

    room_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    media_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )


class VoteReceiptDB(Base):
    """One row per (user, room, media) vote, guards against double votes"""

    __tablename__ = "vote_receipts"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    room_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    media_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    voted_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )


class CacheEntryDB(Base):
    """Catalog response cache"""

    __tablename__ = "movie_cache"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    cached_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<CacheEntry(key={self.key}, expires_at={self.expires_at})>"
