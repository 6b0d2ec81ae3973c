"""Shared fixtures for Beacon tests."""
from datetime import datetime, timedelta, timezone

import pytest

from beacon.services.slideshow_engine import SlideshowEngine
from beacon.services.slideshow_types import EngineConfig, Event


BASE_TIME = datetime(2025, 3, 8, 18, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingDispatcher:
    """Dispatcher that only records what the engine asked for."""

    def __init__(self):
        self.event_requests = 0
        self.image_requests: list[tuple[str, int, bool]] = []

    def request_events(self) -> None:
        self.event_requests += 1

    def request_image(self, url: str, generation: int, *, background: bool = False) -> None:
        self.image_requests.append((url, generation, background))

    @property
    def image_urls(self) -> list[str]:
        return [url for url, _, _ in self.image_requests]


def make_event(
    event_id: str,
    hours_from_base: float = 0,
    image_url: str | None = None,
    duration_hours: float = 1,
) -> Event:
    start = BASE_TIME + timedelta(hours=hours_from_base)
    end = start + timedelta(hours=duration_hours)
    return Event(
        id=event_id,
        title=f"Event {event_id}",
        description="Join us",
        start_time=start,
        end_time=end,
        date_text="Saturday, March 08, 2025",
        start_text="6:00 PM",
        end_text="7:00 PM",
        location="Fellowship Hall",
        category="Worship",
        image_url=image_url,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(
        slide_interval=timedelta(seconds=10),
        refresh_interval=timedelta(minutes=5),
    )


@pytest.fixture
def engine(engine_config, dispatcher, clock) -> SlideshowEngine:
    return SlideshowEngine(engine_config, dispatcher, clock)


@pytest.fixture
def three_events() -> list[Event]:
    return [
        make_event("a", 0, "https://img.example.com/a.png"),
        make_event("b", 24, "https://img.example.com/b.png"),
        make_event("c", 48, "https://img.example.com/c.png"),
    ]
