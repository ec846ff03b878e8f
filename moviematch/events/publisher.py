"""
EventPublisher - Best-effort notification of room state changes.

Publication sits outside the consistency boundary of voting: a failed
push or audit write is logged and counted, never raised.
"""

from typing import Literal

from loguru import logger

from moviematch.events.transport import (
    AuditSink,
    LogAuditSink,
    LoggingTransport,
    RealtimeTransport,
)
from moviematch.events.types import (
    EventPayload,
    MatchFound,
    MemberUpdate,
    RoomEvent,
    VoteProgress,
    VoteUpdate,
)
from moviematch.metrics import MetricsSink, default_metrics


class EventPublisher:
    """
    Builds event envelopes and fans them out to the transport and audit sink.

    Usage:
        publisher = EventPublisher(transport=HttpTransport(url))
        await publisher.publish_vote_update(room_id, user_id, media_id, 2, 3)
    """

    def __init__(
        self,
        transport: RealtimeTransport | None = None,
        audit: AuditSink | None = None,
        metrics: MetricsSink | None = None,
    ):
        self.transport = transport or LoggingTransport()
        self.audit = audit or LogAuditSink()
        self._metrics = metrics or default_metrics

    async def publish_vote_update(
        self,
        room_id: str,
        user_id: str,
        media_id: str,
        current_votes: int,
        total_members: int,
    ) -> RoomEvent | None:
        progress = VoteProgress.compute(current_votes, total_members)
        logger.info(
            f"VOTE_UPDATE room={room_id} media={media_id} "
            f"progress={current_votes}/{total_members} ({progress.percentage:.1f}%)"
        )
        return await self.publish(
            room_id,
            VoteUpdate(user_id=user_id, media_id=media_id, progress=progress),
        )

    async def publish_match_found(
        self,
        room_id: str,
        media_id: str,
        media_title: str,
        participants: list[str],
    ) -> RoomEvent | None:
        logger.info(
            f"MATCH_FOUND room={room_id} media={media_id} "
            f"participants={len(participants)}"
        )
        return await self.publish(
            room_id,
            MatchFound(
                match_id=f"match_{room_id}_{media_id}",
                media_id=media_id,
                media_title=media_title,
                participants=participants,
            ),
        )

    async def publish_member_update(
        self,
        room_id: str,
        user_id: str,
        action: Literal["JOINED", "LEFT"],
        active_members: int,
    ) -> RoomEvent | None:
        return await self.publish(
            room_id,
            MemberUpdate(user_id=user_id, action=action, active_members=active_members),
        )

    async def publish(self, room_id: str, payload: EventPayload) -> RoomEvent | None:
        """
        Wrap payload in an envelope, push it and audit it.

        Returns the envelope, or None if it could not be pushed.
        """
        try:
            event = RoomEvent(room_id=room_id, payload=payload)
        except Exception as e:
            logger.error(f"Could not build {payload.event_type} event for {room_id}: {e}")
            self._metrics.event(payload.event_type, "error")
            return None

        delivered = True
        try:
            await self.transport.publish(event)
        except Exception as e:
            delivered = False
            logger.error(
                f"Error publishing {event.event_type.value} for room {room_id}: {e}"
            )

        try:
            await self.audit.record(event)
        except Exception as e:
            logger.warning(f"Error storing audit event {event.id}: {e}")

        self._metrics.event(event.event_type.value, "ok" if delivered else "error")
        return event if delivered else None

    async def close(self) -> None:
        await self.transport.close()
