from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from urllib.parse import quote
import logging

from beacon import __version__
from beacon.dependencies import get_runtime, get_snapshot, get_tick_scheduler
from beacon.schemas import EventResponse, HealthResponse, SlideResponse
from beacon.services.scheduler_service import TickScheduler
from beacon.services.slideshow_runtime import SlideshowRuntime
from beacon.services.slideshow_types import Event, SlideshowSnapshot


logger = logging.getLogger(__name__)

main_router = APIRouter()

_IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


def guess_image_type(payload: bytes) -> str:
    """Media type from the leading magic bytes"""
    for signature, media_type in _IMAGE_SIGNATURES:
        if payload.startswith(signature):
            return media_type
    if payload[:4] == b"RIFF" and payload[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def _event_response(event: Event) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        start_time=event.start_time.isoformat(),
        end_time=event.end_time.isoformat(),
        date=event.date_text,
        time_range=event.time_range,
        location=event.location,
        location_url=event.location_url,
        image_url=event.image_url,
        category=event.category,
        is_featured=event.is_featured,
    )


@main_router.get("/")
async def root(request: Request) -> dict:
    """Root endpoint with service information"""
    settings = request.app.state.settings
    return {
        "service": "Beacon",
        "version": __version__,
        "window": {"width": settings.window_width, "height": settings.window_height},
        "slide_interval_seconds": settings.slide_interval_seconds,
        "refresh_interval_minutes": settings.refresh_interval_minutes,
        "endpoints": {
            "slide": "/slide - Current slide to render",
            "image": "/image?url=... - Cached image bytes (404 while loading)",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health", response_model=HealthResponse)
async def health_check(
    runtime: Annotated[SlideshowRuntime, Depends(get_runtime)],
    tick_scheduler: Annotated[TickScheduler | None, Depends(get_tick_scheduler)],
) -> HealthResponse:
    """Health check endpoint"""
    snapshot = runtime.snapshot()
    next_tick = tick_scheduler.get_next_run_time() if tick_scheduler else None
    return HealthResponse(
        status="ok" if runtime.running else "stopped",
        scheduler_running=tick_scheduler.running if tick_scheduler else False,
        event_count=snapshot.event_count,
        fetch_in_flight=snapshot.fetch_in_flight,
        last_refresh=snapshot.last_refresh.isoformat() if snapshot.last_refresh else None,
        next_tick=next_tick.isoformat() if next_tick else None,
    )


@main_router.get("/slide", response_model=SlideResponse)
async def current_slide(
    snapshot: Annotated[SlideshowSnapshot, Depends(get_snapshot)]
) -> SlideResponse:
    """
    Current slide for the display

    The event is null until the first refresh lands; image_status is 'pending'
    while the image downloads (or after it failed) and 'none' without an image.
    """
    event = snapshot.current_event
    image_status = "none"
    image_path = None
    if event is not None and event.image_url:
        if snapshot.image_for(event.image_url) is not None:
            image_status = "loaded"
            image_path = f"/image?url={quote(event.image_url, safe='')}"
        else:
            image_status = "pending"

    return SlideResponse(
        event=_event_response(event) if event is not None else None,
        index=snapshot.current_index,
        event_count=snapshot.event_count,
        spinner_phase=snapshot.spinner_phase,
        spinner_frame=snapshot.spinner_frame,
        image_status=image_status,
        image_path=image_path,
    )


@main_router.get("/image")
async def cached_image(
    snapshot: Annotated[SlideshowSnapshot, Depends(get_snapshot)],
    url: Annotated[str, Query(min_length=1, description="Image URL as listed on the event")],
) -> Response:
    """Serve a cached image; 404 while it is still loading or was not available"""
    payload = snapshot.image_for(url)
    if payload is None:
        raise HTTPException(status_code=404, detail="Image not loaded")
    return Response(content=payload, media_type=guess_image_type(payload))
