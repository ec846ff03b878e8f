"""
VoteEngine - Stop-on-Match consensus.

A room matches as soon as one media has been liked by every active member.
Tallies for different media accumulate independently; only the tally of
the media just voted on is compared against the active member count.

Guards run in a fixed order and each is terminal:
1. room exists and accepts votes  -> RoomUnavailable
2. caller is an active member     -> NotAMember
3. first vote for this media      -> DuplicateVote

Store errors propagate as-is; nothing here retries. Events go out only
after the vote transaction commits. Publication is
best-effort and never fails a recorded vote.
"""

from datetime import datetime
from typing import Callable, Protocol

from loguru import logger

from moviematch.datastore import (
    AlreadyExistsError,
    Datastore,
    MembershipRepository,
    RoomRepository,
    VoteReceiptRepository,
    VoteTallyRepository,
)
from moviematch.events import EventPublisher
from moviematch.exceptions import DuplicateVote, NotAMember, RoomUnavailable
from moviematch.metrics import MetricsSink, default_metrics
from moviematch.models import Room, RoomView
from moviematch.utils import utcnow


class TitleLookup(Protocol):
    async def peek_title(self, media_id: str) -> str: ...


class VoteEngine:
    """
    Records likes and detects unanimous consensus.

    Usage:
        engine = VoteEngine(store, publisher, titles=movie_provider)
        view = await engine.cast_vote(user_id, room_id, media_id)
        if view.status == RoomStatus.MATCHED:
            ...
    """

    def __init__(
        self,
        store: Datastore,
        publisher: EventPublisher,
        titles: TitleLookup | None = None,
        clock: Callable[[], datetime] = utcnow,
        metrics: MetricsSink | None = None,
    ):
        self.store = store
        self.publisher = publisher
        self.titles = titles
        self._clock = clock
        self._metrics = metrics or default_metrics

    async def cast_vote(self, user_id: str, room_id: str, media_id: str) -> RoomView:
        logger.info(f"Vote: user={user_id} room={room_id} media={media_id}")

        room = await self._validate(user_id, room_id)
        now = self._clock()
        consensus = won = False
        participants: list[str] = []

        # Receipt, tally, consensus check and match transition share one
        # transaction. A store failure leaves no receipt behind.
        try:
            async with self.store.session() as session:
                rooms = RoomRepository(session)
                members = MembershipRepository(session)

                await VoteReceiptRepository(session).put_if_absent(
                    user_id, room_id, media_id, now
                )
                votes = await VoteTallyRepository(session).increment(
                    room_id, media_id, now
                )
                total_members = await members.count_active(room_id)

                consensus = votes >= total_members
                if consensus:
                    won = await rooms.mark_matched(room_id, media_id, now)
                    participants = await members.list_active_user_ids(room_id)
                    room = await rooms.get(room_id)
        except AlreadyExistsError:
            logger.info(f"Duplicate vote rejected: user={user_id} media={media_id}")
            raise DuplicateVote() from None

        self._metrics.vote_recorded()
        logger.info(f"Room {room_id} media {media_id}: {votes}/{total_members} votes")

        if not consensus:
            await self.publisher.publish_vote_update(
                room_id, user_id, media_id, votes, total_members
            )
        elif won:
            await self._announce_match(room_id, media_id, participants)
        else:
            # Another media reached consensus first; its result stands.
            logger.warning(
                f"Room {room_id} already matched on {room.result_media_id}, "
                f"ignoring consensus on {media_id}"
            )
        return RoomView.from_room(room)

    async def _validate(self, user_id: str, room_id: str) -> Room:
        async with self.store.session() as session:
            room = await RoomRepository(session).get(room_id)
            if room is None or not room.accepts_votes:
                logger.info(
                    f"Room {room_id} unavailable for voting "
                    f"(status={room.status.value if room else 'missing'})"
                )
                raise RoomUnavailable()

            membership = await MembershipRepository(session).get(room_id, user_id)
            if membership is None or not membership.is_active:
                logger.info(f"User {user_id} is not an active member of {room_id}")
                raise NotAMember()

        return room

    async def _announce_match(
        self, room_id: str, media_id: str, participants: list[str]
    ) -> None:
        self._metrics.match_found()
        logger.info(f"Match found in room {room_id}: media {media_id}")
        await self.publisher.publish_match_found(
            room_id, media_id, await self._media_title(media_id), participants
        )

    async def _media_title(self, media_id: str) -> str:
        fallback = f"Movie {media_id}"
        if self.titles is None:
            return fallback
        try:
            return await self.titles.peek_title(media_id)
        except Exception as e:
            logger.warning(f"Could not resolve title for {media_id}: {e}")
            return fallback
