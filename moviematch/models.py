"""
Domain types using Pydantic models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class RoomStatus(str, Enum):
    """Room lifecycle states."""

    WAITING = "WAITING"
    ACTIVE = "ACTIVE"
    MATCHED = "MATCHED"


VOTABLE_STATUSES = (RoomStatus.WAITING, RoomStatus.ACTIVE)


class MemberRole(str, Enum):
    """Membership roles."""

    HOST = "HOST"
    MEMBER = "MEMBER"


class Room(BaseModel):
    """A voting session shared by a host and joined members."""

    id: str
    name: str = ""
    status: RoomStatus = RoomStatus.WAITING
    host_id: str
    result_media_id: str | None = None
    invite_code: str = ""
    created_at: datetime
    updated_at: datetime

    @property
    def accepts_votes(self) -> bool:
        return self.status in VOTABLE_STATUSES


class RoomView(BaseModel):
    """Room as returned to callers."""

    id: str
    name: str = ""
    status: RoomStatus
    host_id: str
    result_media_id: str | None = None
    invite_code: str = ""
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_room(cls, room: Room) -> "RoomView":
        return cls(**room.model_dump())


class Membership(BaseModel):
    """A user's participation record in a room."""

    room_id: str
    user_id: str
    role: MemberRole = MemberRole.MEMBER
    is_active: bool = True
    joined_at: datetime


class VoteTally(BaseModel):
    """Distinct members who liked a media in a room."""

    room_id: str
    media_id: str
    count: int
    updated_at: datetime


class Genre(BaseModel):
    id: int
    name: str


class MediaSummary(BaseModel):
    """Candidate movie as shown in the voting deck."""

    id: str
    title: str
    poster: str
    overview: str


class MediaDetail(BaseModel):
    """Full movie details."""

    id: str
    title: str
    overview: str
    poster_path: str | None = None
    backdrop_path: str | None = None
    release_date: str = ""
    vote_average: float = 0
    genres: list[Genre] = Field(default_factory=list)
    runtime: int | None = None
