from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from beacon import __version__
from beacon.config import BeaconSettings, settings as default_settings, setup_logging
from beacon.routers import main_router
from beacon.services.event_source import EventSourceClient
from beacon.services.image_source import ImageSourceClient
from beacon.services.scheduler_service import TickScheduler
from beacon.services.slideshow_runtime import SlideshowRuntime
from beacon.utils.logging_helpers import log_section_end, log_section_start


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    settings: BeaconSettings = app.state.settings
    log_section_start(logger, "Beacon digital signage startup")
    settings.log_configuration()

    event_source = EventSourceClient(
        settings.api_url,
        display_timezone=settings.display_timezone,
    )
    image_source = ImageSourceClient()
    runtime = SlideshowRuntime(settings.engine_config(), event_source, image_source)
    tick_scheduler = TickScheduler(runtime.tick, settings.tick_interval)

    try:
        runtime.start()
        tick_scheduler.start()
    except Exception as e:
        logger.error(f"Failed to start Beacon: {e}", exc_info=True)
        await runtime.stop()
        await event_source.aclose()
        await image_source.aclose()
        raise

    app.state.runtime = runtime
    app.state.tick_scheduler = tick_scheduler
    log_section_end(logger, "Beacon digital signage startup")

    yield

    log_section_start(logger, "Beacon shutdown")
    try:
        tick_scheduler.shutdown()
        await runtime.stop()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)
    finally:
        await event_source.aclose()
        await image_source.aclose()
        app.state.runtime = None
        app.state.tick_scheduler = None
    log_section_end(logger, "Beacon shutdown")


def create_app(settings: BeaconSettings | None = None) -> FastAPI:
    """Build the FastAPI application serving the slideshow snapshot"""
    app = FastAPI(
        title="Beacon",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings or default_settings
    app.state.runtime = None
    app.state.tick_scheduler = None
    app.include_router(main_router)
    return app


setup_logging()
app = create_app()
