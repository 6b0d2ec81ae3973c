"""
Image Cache

In-memory mapping from image URL to downloaded bytes, scoped to one refresh generation.
"""
import logging
from collections.abc import Iterable
from types import MappingProxyType
from typing import Mapping


logger = logging.getLogger(__name__)


class ImageCache:
    """
    URL -> bytes store with per-generation request bookkeeping.

    A generation starts with every successful refresh. Within one generation a URL
    is requested at most once: it is either in flight, loaded, or failed. Failed
    URLs stay absent until the next generation clears them.
    """

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}
        self._in_flight: set[str] = set()
        self._failed: set[str] = set()
        self.generation = 0

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, url: str) -> bytes | None:
        return self._entries.get(url)

    def urls(self) -> set[str]:
        return set(self._entries)

    def view(self) -> Mapping[str, bytes]:
        """Read-only copy of the loaded entries."""
        return MappingProxyType(dict(self._entries))

    def reset(self) -> int:
        """Drop every entry and start a new generation. Returns the new generation."""
        dropped = len(self._entries)
        self._entries.clear()
        self._in_flight.clear()
        self._failed.clear()
        self.generation += 1
        logger.info("Cleared %s cached images (generation %s)", dropped, self.generation)
        return self.generation

    def needs_fetch(self, url: str) -> bool:
        """True when ``url`` is neither loaded, in flight nor failed in this generation."""
        return (
            url not in self._entries
            and url not in self._in_flight
            and url not in self._failed
        )

    def mark_requested(self, url: str) -> None:
        self._in_flight.add(url)

    def store(self, url: str, payload: bytes, generation: int) -> None:
        """
        Insert or overwrite the entry for ``url``.

        Completions from an older generation are still stored (the cache is keyed by
        URL, not by slide) but do not touch this generation's bookkeeping.
        """
        self._entries[url] = payload
        if generation == self.generation:
            self._in_flight.discard(url)
            self._failed.discard(url)
        else:
            logger.debug("Stored late image from generation %s: %s", generation, url)

    def mark_failed(self, url: str, generation: int) -> None:
        if generation != self.generation:
            logger.debug("Ignoring failure from generation %s: %s", generation, url)
            return
        self._in_flight.discard(url)
        if url not in self._entries:
            self._failed.add(url)

    def retain(self, reachable: Iterable[str]) -> list[str]:
        """
        Evict every cached URL not present in ``reachable``.

        Returns:
            URLs that were removed
        """
        keep = set(reachable)
        removed = [url for url in self._entries if url not in keep]
        for url in removed:
            logger.info("Removing unused image: %s", url)
            del self._entries[url]
        return removed
