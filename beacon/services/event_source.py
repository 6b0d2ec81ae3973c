"""
Event Source

Fetches the upcoming-events list from the signage API and converts it into display events.
A single attempt per call; retrying is left to the next refresh.
"""
import asyncio
import logging

import httpx
from pydantic import ValidationError

from beacon.schemas import ApiEnvelope, ApiEvent
from beacon.services.slideshow_types import Event
from beacon.utils.text_cleanup import html_to_text
from beacon.utils.timezone import format_clock_time, format_event_date


logger = logging.getLogger(__name__)

API_TIMEOUT = 10.0
UPCOMING_EVENTS_PATH = "/api/events/upcoming"


class EventSourceError(RuntimeError):
    """Raised when the event list cannot be fetched or understood"""
    pass


def event_from_record(record: ApiEvent, display_timezone: str = "UTC") -> Event:
    """
    Convert an API record into a display event.

    Args:
        record: Validated API event
        display_timezone: Timezone used for the human-readable date/time strings

    Returns:
        Immutable Event with cleaned description and formatted date strings
    """
    if record.image:
        logger.debug("Using image URL: %s", record.image)

    return Event(
        id=record.id,
        title=record.title,
        description=html_to_text(record.description),
        start_time=record.start_time,
        end_time=record.end_time,
        date_text=format_event_date(record.start_time, display_timezone),
        start_text=format_clock_time(record.start_time, display_timezone),
        end_text=format_clock_time(record.end_time, display_timezone),
        location=record.location,
        category=record.category,
        image_url=record.image,
        location_url=record.location_url,
        thumbnail_url=record.thumbnail,
        is_featured=record.is_featured,
        recurring_type=record.recurring_type,
    )


class EventSourceClient:
    """Client for GET {base_url}/api/events/upcoming"""

    def __init__(
        self,
        base_url: str,
        *,
        display_timezone: str = "UTC",
        timeout: float = API_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.display_timezone = display_timezone
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def fetch_events(self) -> list[Event]:
        """
        Fetch upcoming events.

        Returns:
            Events in the order the API returned them

        Raises:
            EventSourceError: On network failure, non-2xx status, malformed payload
                or an envelope with success=false
        """
        url = f"{self.base_url}{UPCOMING_EVENTS_PATH}"
        logger.info("Fetching events from URL: %s", url)

        try:
            async with asyncio.timeout(self.timeout):
                response = await self._client.get(
                    UPCOMING_EVENTS_PATH,
                    headers={"Cache-Control": "max-age=60"},
                )
            logger.info("Got response with status: %s", response.status_code)
            response.raise_for_status()
        except TimeoutError as exc:
            logger.error("Event request exceeded %ss deadline", self.timeout)
            raise EventSourceError(
                f"Event request timed out after {self.timeout}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            logger.error("HTTP error status: %s", exc.response.status_code)
            raise EventSourceError(
                f"Event API returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("HTTP request failed: %s", exc)
            raise EventSourceError(
                f"Event request failed: {type(exc).__name__}: {exc}"
            ) from exc

        try:
            envelope = ApiEnvelope.model_validate_json(response.content)
        except ValidationError as exc:
            logger.error("Failed to parse JSON response: %s", exc)
            raise EventSourceError(f"Malformed event payload: {exc.error_count()} error(s)") from exc

        if not envelope.success:
            logger.error("API returned success: false")
            raise EventSourceError("API request failed")

        logger.info("Successfully parsed %s events from response", len(envelope.data))
        events = [event_from_record(record, self.display_timezone) for record in envelope.data]

        if not events:
            logger.warning("No upcoming events found")
        else:
            logger.info(
                "Found %s upcoming events, from %s to %s",
                len(events),
                events[0].date_text,
                events[-1].date_text,
            )
        return events

    async def aclose(self) -> None:
        await self._client.aclose()
