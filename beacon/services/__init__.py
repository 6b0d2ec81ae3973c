"""
Services package for Beacon

This package contains the slideshow engine, its runtime and the network sources it drives.
"""
from beacon.services.event_source import EventSourceClient, EventSourceError
from beacon.services.image_source import ImageSourceClient
from beacon.services.scheduler_service import TickScheduler
from beacon.services.slideshow_engine import SlideshowEngine
from beacon.services.slideshow_runtime import SlideshowRuntime

__all__ = [
    'EventSourceClient',
    'EventSourceError',
    'ImageSourceClient',
    'TickScheduler',
    'SlideshowEngine',
    'SlideshowRuntime',
]
