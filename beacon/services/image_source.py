"""
Image Source

Downloads event images with a size guard. Failures are reported as "not available"
(None) instead of raising, so a broken image never disturbs the slideshow.
"""
import asyncio
import logging

import httpx


logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE = 2 * 1024 * 1024  # 2 MiB
IMAGE_TIMEOUT = 5.0


def _declared_length(response: httpx.Response) -> int | None:
    """Content-Length from a HEAD probe, or None when unknown"""
    if not response.is_success:
        return None
    raw = response.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.debug("Ignoring invalid Content-Length %r for %s", raw, response.request.url)
        return None


class ImageSourceClient:
    """Fetches raw image bytes for opaque URLs (HEAD probe, then streamed GET)"""

    def __init__(
        self,
        *,
        max_bytes: int = MAX_IMAGE_SIZE,
        timeout: float = IMAGE_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.max_bytes = max_bytes
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def fetch_image(self, url: str) -> bytes | None:
        """
        Download one image within a total deadline of ``timeout`` seconds.

        The httpx timeout only bounds each connect/read phase, so a server that
        drips bytes would otherwise keep the request alive indefinitely.

        Args:
            url: Image URL

        Returns:
            Image bytes, or None when the image is too large, too slow or could not be fetched
        """
        try:
            async with asyncio.timeout(self.timeout):
                return await self._download(url)
        except TimeoutError:
            logger.error("Image download exceeded %ss deadline: %s", self.timeout, url)
            return None

    async def _download(self, url: str) -> bytes | None:
        try:
            head = await self._client.head(url)
        except httpx.HTTPError as exc:
            logger.error("Failed to fetch image head %s: %s", url, exc)
            return None

        declared = _declared_length(head)
        if declared is not None:
            logger.info("Image size for %s: %s KB", url, declared // 1024)
            if declared > self.max_bytes:
                logger.warning("Image too large (%sKB), skipping download: %s", declared // 1024, url)
                return None

        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()
                payload = bytearray()
                async for chunk in response.aiter_bytes():
                    payload.extend(chunk)
                    if len(payload) > self.max_bytes:
                        logger.warning(
                            "Image too large after download (>%sKB), skipping: %s",
                            self.max_bytes // 1024,
                            url,
                        )
                        return None
        except httpx.HTTPError as exc:
            logger.error("Failed to fetch image %s: %s", url, exc)
            return None

        logger.info("Successfully downloaded image %s with %s bytes", url, len(payload))
        return bytes(payload)

    async def aclose(self) -> None:
        await self._client.aclose()
