"""
Slideshow Engine

Single-threaded state machine behind the display. It reacts to a fixed-rate tick and
to completion messages, decides when to refresh events, when to advance slides and
which images to load or evict, and hands the actual network work to a dispatcher.

The engine never awaits anything; callers must deliver ticks and completions one at a
time (see ``SlideshowRuntime``).
"""
import logging
from datetime import datetime
from typing import Callable, Iterable, Protocol

from beacon.services.image_cache import ImageCache
from beacon.services.slideshow_types import (
    EngineConfig,
    Event,
    EventsLoaded,
    ImageLoaded,
    RefreshFailed,
    SlideshowSnapshot,
    SlideshowState,
    Tick,
)
from beacon.utils.logging_helpers import log_refresh_summary
from beacon.utils.timezone import utc_now


logger = logging.getLogger(__name__)


class WorkDispatcher(Protocol):
    """Starts asynchronous work whose completion comes back as a message."""

    def request_events(self) -> None:
        ...

    def request_image(self, url: str, generation: int, *, background: bool = False) -> None:
        ...


class SlideshowEngine:
    """Owns SlideshowState and ImageCache; the only code allowed to mutate them."""

    def __init__(
        self,
        config: EngineConfig,
        dispatcher: WorkDispatcher,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self._dispatcher = dispatcher
        self._clock = clock
        self.state = SlideshowState(last_slide_advance=clock())
        self.images = ImageCache()
        self._snapshot = self._build_snapshot()

    def snapshot(self) -> SlideshowSnapshot:
        """Latest consistent view of the slideshow."""
        return self._snapshot

    def handle(self, message: object) -> None:
        """Apply one message. Unknown messages are logged and dropped."""
        if isinstance(message, Tick):
            self.tick()
        elif isinstance(message, EventsLoaded):
            self.on_events_loaded(message.events)
        elif isinstance(message, RefreshFailed):
            self.on_refresh_failed(message.error)
        elif isinstance(message, ImageLoaded):
            self.on_image_loaded(message.url, message.payload, message.generation)
        else:
            logger.warning("Ignoring unknown message: %r", message)

    def tick(self) -> None:
        """Advance the spinner, then start a refresh and/or a slide change when due."""
        now = self._clock()
        state = self.state

        state.spinner_phase = (state.spinner_phase + 1) % self.config.frame_count

        if self.refresh_due(now) and not state.fetch_in_flight:
            logger.info("Refresh needed, starting event fetch")
            state.fetch_in_flight = True
            self._dispatcher.request_events()

        if state.events and now - state.last_slide_advance >= self.config.slide_interval:
            self._advance_slide(now)

        self._publish()

    def refresh_due(self, now: datetime) -> bool:
        last_refresh = self.state.last_refresh
        return last_refresh is None or now - last_refresh >= self.config.refresh_interval

    def on_events_loaded(self, events: Iterable[Event]) -> None:
        """Replace the event list, start a new image generation and queue its images."""
        now = self._clock()
        state = self.state

        # sorted() is stable, so ties keep the source order
        ordered = sorted(events, key=lambda event: event.start_time)
        self.images.reset()
        state.events = ordered

        if state.current_index >= len(ordered):
            if state.current_index:
                logger.info("Resetting current event index from %s to 0", state.current_index)
            state.current_index = 0

        state.fetch_in_flight = False
        state.last_refresh = now
        log_refresh_summary(logger, len(ordered), state.current_index, self.images.generation)

        current = state.current_event
        if current is not None:
            self._request_image(current, background=False)
        for index, event in enumerate(ordered):
            if index != state.current_index:
                self._request_image(event, background=True)

        self._publish()

    def on_refresh_failed(self, error: str) -> None:
        """Keep the last good data; the refresh stays due so the next tick retries."""
        logger.error("Event refresh failed: %s", error)
        self.state.fetch_in_flight = False
        self._publish()

    def on_image_loaded(self, url: str, payload: bytes | None, generation: int) -> None:
        if payload is None:
            logger.warning("Image not available, leaving placeholder: %s", url)
            self.images.mark_failed(url, generation)
        else:
            logger.info("Image loaded: %s", url)
            self.images.store(url, payload, generation)
        self._publish()

    def reachable_urls(self, next_index: int) -> set[str]:
        """Image URLs of the event about to be shown and of every known event."""
        events = self.state.events
        urls = {event.image_url for event in events if event.image_url}
        upcoming = events[next_index].image_url if events else None
        if upcoming:
            urls.add(upcoming)
        return urls

    def _advance_slide(self, now: datetime) -> None:
        state = self.state
        next_index = (state.current_index + 1) % len(state.events)
        logger.info(
            "Updating current event index from %s to %s",
            state.current_index,
            next_index,
        )

        self.images.retain(self.reachable_urls(next_index))

        state.current_index = next_index
        state.last_slide_advance = now

        self._request_image(state.events[next_index], background=False)

    def _request_image(self, event: Event, *, background: bool) -> None:
        url = event.image_url
        if not url:
            return
        if not self.images.needs_fetch(url):
            logger.debug("Image already loaded or requested: %s", url)
            return

        if background:
            logger.info("Queueing image preload for: %s", url)
        else:
            logger.info("Starting image load for current event: %s", url)
        self.images.mark_requested(url)
        self._dispatcher.request_image(url, self.images.generation, background=background)

    def _build_snapshot(self) -> SlideshowSnapshot:
        state = self.state
        return SlideshowSnapshot(
            current_event=state.current_event,
            current_index=state.current_index,
            event_count=len(state.events),
            spinner_phase=state.spinner_phase,
            fetch_in_flight=state.fetch_in_flight,
            last_refresh=state.last_refresh,
            images=self.images.view(),
        )

    def _publish(self) -> None:
        self._snapshot = self._build_snapshot()
