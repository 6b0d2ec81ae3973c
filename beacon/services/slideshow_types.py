"""
Shared dataclasses used across the slideshow engine, its runtime and the HTTP surface.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Mapping


LOADING_FRAMES: tuple[str, ...] = ("⠋", "⠙", "⠹", "⠸")


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Durations driving the engine; injected at construction."""
    slide_interval: timedelta
    refresh_interval: timedelta
    frame_count: int = len(LOADING_FRAMES)


@dataclass(frozen=True, slots=True)
class Event:
    """One upcoming occurrence, ready for display."""
    id: str
    title: str
    description: str
    start_time: datetime
    end_time: datetime
    date_text: str
    start_text: str
    end_text: str
    location: str
    category: str
    image_url: str | None = None
    location_url: str | None = None
    thumbnail_url: str | None = None
    is_featured: bool = False
    recurring_type: str | None = None

    @property
    def time_range(self) -> str:
        return f"{self.start_text} - {self.end_text}"


@dataclass(slots=True)
class SlideshowState:
    """Mutable slideshow state. Only the engine touches it."""
    last_slide_advance: datetime
    events: list[Event] = field(default_factory=list)
    current_index: int = 0
    last_refresh: datetime | None = None
    fetch_in_flight: bool = False
    spinner_phase: int = 0

    @property
    def current_event(self) -> Event | None:
        if not self.events:
            return None
        return self.events[self.current_index]


@dataclass(frozen=True, slots=True)
class SlideshowSnapshot:
    """Read-only view handed to the presentation layer once per tick."""
    current_event: Event | None
    current_index: int
    event_count: int
    spinner_phase: int
    fetch_in_flight: bool
    last_refresh: datetime | None
    images: Mapping[str, bytes] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def spinner_frame(self) -> str:
        return LOADING_FRAMES[self.spinner_phase % len(LOADING_FRAMES)]

    def image_for(self, url: str | None) -> bytes | None:
        """Loaded bytes for ``url``, or None while pending."""
        if url is None:
            return None
        return self.images.get(url)


# Messages processed one at a time by the runtime actor.

@dataclass(frozen=True, slots=True)
class Tick:
    pass


@dataclass(frozen=True, slots=True)
class EventsLoaded:
    events: list[Event]


@dataclass(frozen=True, slots=True)
class RefreshFailed:
    error: str


@dataclass(frozen=True, slots=True)
class ImageLoaded:
    url: str
    generation: int
    payload: bytes | None = None


__all__ = [
    "LOADING_FRAMES",
    "EngineConfig",
    "Event",
    "SlideshowState",
    "SlideshowSnapshot",
    "Tick",
    "EventsLoaded",
    "RefreshFailed",
    "ImageLoaded",
]
