"""Beacon: event slideshow client for digital signage displays."""

__version__ = "0.1.0"
