"""
Request dependencies

Gives route handlers access to the components started by the application lifespan.
"""
import logging

from fastapi import HTTPException, Request

from beacon.services.scheduler_service import TickScheduler
from beacon.services.slideshow_runtime import SlideshowRuntime
from beacon.services.slideshow_types import SlideshowSnapshot


logger = logging.getLogger(__name__)


def get_runtime(request: Request) -> SlideshowRuntime:
    """
    Get the slideshow runtime attached to the application.

    Raises:
        HTTPException: 503 if the runtime has not been started yet
    """
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        logger.warning("Slideshow runtime requested before startup")
        raise HTTPException(status_code=503, detail="Slideshow runtime not started")
    return runtime


def get_snapshot(request: Request) -> SlideshowSnapshot:
    """Snapshot taken once for the whole request."""
    return get_runtime(request).snapshot()


def get_tick_scheduler(request: Request) -> TickScheduler | None:
    return getattr(request.app.state, "tick_scheduler", None)
