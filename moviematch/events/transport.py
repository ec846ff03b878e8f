"""
Real-time transports and audit sinks for room events.
"""

from abc import ABC, abstractmethod

from loguru import logger

from moviematch.events.types import RoomEvent
from moviematch.services.client import HttpClient


class RealtimeTransport(ABC):
    """Pushes events to room subscribers. Fire-and-forget."""

    @abstractmethod
    async def publish(self, event: RoomEvent) -> None: ...

    async def close(self) -> None:
        pass


class LoggingTransport(RealtimeTransport):
    """Writes events to the log. Used when no push channel is configured."""

    async def publish(self, event: RoomEvent) -> None:
        logger.bind(room_id=event.room_id, event_type=event.event_type.value).info(
            f"{event.event_type.value} published for room {event.room_id}"
        )


class HttpTransport(RealtimeTransport):
    """POSTs the JSON envelope to a webhook (e.g. a GraphQL/pub-sub bridge)."""

    SERVICE_ID = "realtime"

    def __init__(self, url: str, client: HttpClient | None = None):
        self.url = url
        self.client = client or HttpClient(timeout=5.0)

    async def publish(self, event: RoomEvent) -> None:
        await self.client.request_json(
            service_id=self.SERVICE_ID,
            url=self.url,
            method="POST",
            json_data=event.model_dump(mode="json"),
        )

    async def close(self) -> None:
        await self.client.close()


class AuditSink(ABC):
    @abstractmethod
    async def record(self, event: RoomEvent) -> None: ...


class LogAuditSink(AuditSink):
    """Structured AUDIT_EVENT log records."""

    async def record(self, event: RoomEvent) -> None:
        logger.bind(
            audit=True,
            room_id=event.room_id,
            event_type=event.event_type.value,
            event=event.model_dump(mode="json"),
        ).info(f"AUDIT_EVENT:{event.event_type.value} room={event.room_id} id={event.id}")
