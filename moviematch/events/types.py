"""
Room event types.

A closed set of payloads behind one envelope. The payload's `event_type`
literal is the discriminator, so a serialized RoomEvent always parses back
into exactly one payload type.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, computed_field

from moviematch.utils import new_id, utcnow


class EventType(str, Enum):
    VOTE_UPDATE = "VOTE_UPDATE"
    MATCH_FOUND = "MATCH_FOUND"
    MEMBER_UPDATE = "MEMBER_UPDATE"


class VoteProgress(BaseModel):
    """How close a media is to consensus."""

    total_votes: int
    total_members: int
    remaining_users: int
    percentage: float

    @classmethod
    def compute(cls, current_votes: int, total_members: int) -> "VoteProgress":
        return cls(
            total_votes=current_votes,
            total_members=total_members,
            remaining_users=max(0, total_members - current_votes),
            percentage=(current_votes / total_members) * 100 if total_members else 0,
        )


class VoteUpdate(BaseModel):
    event_type: Literal["VOTE_UPDATE"] = "VOTE_UPDATE"
    user_id: str
    media_id: str
    vote_type: Literal["LIKE"] = "LIKE"
    progress: VoteProgress


class MatchFound(BaseModel):
    event_type: Literal["MATCH_FOUND"] = "MATCH_FOUND"
    match_id: str
    media_id: str
    media_title: str
    participants: list[str]
    consensus_type: Literal["UNANIMOUS"] = "UNANIMOUS"


class MemberUpdate(BaseModel):
    event_type: Literal["MEMBER_UPDATE"] = "MEMBER_UPDATE"
    user_id: str
    action: Literal["JOINED", "LEFT"]
    active_members: int


EventPayload = Annotated[
    Union[VoteUpdate, MatchFound, MemberUpdate],
    Field(discriminator="event_type"),
]


class RoomEvent(BaseModel):
    """Envelope for everything pushed to room subscribers."""

    id: str = Field(default_factory=new_id)
    timestamp: datetime = Field(default_factory=utcnow)
    room_id: str
    payload: EventPayload

    @computed_field  # type: ignore[prop-decorator]
    @property
    def event_type(self) -> EventType:
        return EventType(self.payload.event_type)
