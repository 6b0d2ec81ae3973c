"""
Slideshow Runtime

Asyncio actor around SlideshowEngine. Ticks and completions are queued and applied one
at a time by a single consumer task, while event and image downloads run as background
tasks whose results are posted back to the same queue.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from datetime import datetime
from typing import Any, Protocol

from beacon.services.event_source import EventSourceError
from beacon.services.slideshow_engine import SlideshowEngine
from beacon.services.slideshow_types import (
    EngineConfig,
    Event,
    EventsLoaded,
    ImageLoaded,
    RefreshFailed,
    SlideshowSnapshot,
    Tick,
)
from beacon.utils.timezone import utc_now


logger = logging.getLogger(__name__)


class EventFetcher(Protocol):
    async def fetch_events(self) -> list[Event]:
        ...


class ImageFetcher(Protocol):
    async def fetch_image(self, url: str) -> bytes | None:
        ...


class SlideshowRuntime:
    """Serializes all engine work onto one consumer task."""

    def __init__(
        self,
        config: EngineConfig,
        event_source: EventFetcher,
        image_source: ImageFetcher,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._event_source = event_source
        self._image_source = image_source
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._tasks: set[asyncio.Task] = set()
        self._consumer: asyncio.Task | None = None
        self.engine = SlideshowEngine(config, self, clock)

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def snapshot(self) -> SlideshowSnapshot:
        return self.engine.snapshot()

    def post(self, message: object) -> None:
        """Queue a message for the consumer task."""
        self._queue.put_nowait(message)

    async def tick(self) -> None:
        """Scheduler job: queue one tick."""
        self.post(Tick())

    # WorkDispatcher interface, called by the engine from inside the consumer task

    def request_events(self) -> None:
        self._spawn(self._load_events(), name="event-refresh")

    def request_image(self, url: str, generation: int, *, background: bool = False) -> None:
        prefix = "image-preload" if background else "image-current"
        self._spawn(self._load_image(url, generation), name=f"{prefix}:{url}")

    def _spawn(self, coro: Coroutine[Any, Any, None], *, name: str) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _load_events(self) -> None:
        try:
            events = await self._event_source.fetch_events()
        except EventSourceError as exc:
            self.post(RefreshFailed(str(exc)))
            return
        except Exception as exc:  # Catch-all so the in-flight flag is always cleared
            logger.error("Unexpected error during event fetch: %s", exc, exc_info=True)
            self.post(RefreshFailed(f"{type(exc).__name__}: {exc}"))
            return
        self.post(EventsLoaded(events))

    async def _load_image(self, url: str, generation: int) -> None:
        try:
            payload = await self._image_source.fetch_image(url)
        except Exception as exc:
            logger.error("Unexpected error while loading image %s: %s", url, exc, exc_info=True)
            payload = None
        self.post(ImageLoaded(url=url, generation=generation, payload=payload))

    async def run(self) -> None:
        """Consumer loop: apply queued messages one by one, forever."""
        while True:
            message = await self._queue.get()
            try:
                self.engine.handle(message)
            except Exception as exc:
                logger.error("Error while handling %s: %s", type(message).__name__, exc, exc_info=True)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self.running:
            logger.warning("Slideshow runtime already running")
            return
        self._consumer = asyncio.get_running_loop().create_task(self.run(), name="slideshow-consumer")
        logger.info("Slideshow runtime started")

    async def settle(self) -> None:
        """Wait until no download is outstanding and every queued message is applied."""
        while True:
            await self._queue.join()
            if not self._tasks:
                break
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel the consumer and any outstanding downloads."""
        pending = list(self._tasks)
        if self._consumer is not None:
            pending.append(self._consumer)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._consumer = None
        logger.info("Slideshow runtime stopped (%s task(s) cancelled)", len(pending))
