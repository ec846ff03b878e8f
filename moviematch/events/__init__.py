from moviematch.events.publisher import EventPublisher
from moviematch.events.transport import (
    AuditSink,
    HttpTransport,
    LogAuditSink,
    LoggingTransport,
    RealtimeTransport,
)
from moviematch.events.types import (
    EventType,
    MatchFound,
    MemberUpdate,
    RoomEvent,
    VoteProgress,
    VoteUpdate,
)

__all__ = [
    "EventPublisher",
    "AuditSink",
    "HttpTransport",
    "LogAuditSink",
    "LoggingTransport",
    "RealtimeTransport",
    "EventType",
    "MatchFound",
    "MemberUpdate",
    "RoomEvent",
    "VoteProgress",
    "VoteUpdate",
]
