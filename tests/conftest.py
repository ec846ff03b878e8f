"""
Shared fixtures for MovieMatch tests.

Every test gets its own SQLite file under tmp_path, so store state never
leaks between tests.
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from moviematch.datasource.base import CatalogSource
from moviematch.datastore import Datastore
from moviematch.events import EventPublisher, RealtimeTransport, RoomEvent
from moviematch.metrics import MetricsSink
from moviematch.models import MediaDetail, MediaSummary
from moviematch.services.errors import RemoteError


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingTransport(RealtimeTransport):
    """Keeps every published event in memory."""

    def __init__(self):
        self.events: list[RoomEvent] = []

    async def publish(self, event: RoomEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[RoomEvent]:
        return [e for e in self.events if e.event_type.value == event_type]


class FakeCatalog(CatalogSource):
    """In-memory catalog that can be switched to failing."""

    def __init__(self):
        super().__init__(client=MagicMock())
        self.failing = False
        self.list_calls = 0
        self.detail_calls = 0
        self.movies = [
            MediaSummary(
                id="603", title="The Matrix", poster="p.jpg", overview="Neo."
            ),
            MediaSummary(id="550", title="Fight Club", poster="f.jpg", overview="Soap."),
        ]

    @property
    def service_id(self) -> str:
        return "fake"

    def is_configured(self) -> bool:
        return True

    async def fetch_list(self, genre: str | None = None) -> list[MediaSummary]:
        self.list_calls += 1
        if self.failing:
            raise RemoteError("catalog down", service_id="fake", status_code=503)
        return list(self.movies)

    async def fetch_detail(self, media_id: str) -> MediaDetail:
        self.detail_calls += 1
        if self.failing:
            raise RemoteError("catalog down", service_id="fake", status_code=503)
        return MediaDetail(id=media_id, title=f"Title {media_id}", overview="...")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics() -> MagicMock:
    return MagicMock(spec=MetricsSink)


@pytest.fixture
async def store(tmp_path):
    """Initialized SQLite datastore."""
    datastore = Datastore(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    await datastore.init()
    yield datastore
    await datastore.close()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def publisher(transport, metrics) -> EventPublisher:
    return EventPublisher(transport=transport, metrics=metrics)


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()
