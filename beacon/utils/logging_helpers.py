"""
Structured logging helpers for consistent log formatting.
"""
import logging


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """
    Log the start of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being started
    """
    logger.info(f"Starting: {section_name}")


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """
    Log the end of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being ended
    """
    logger.info(f"Completed: {section_name}")


def log_refresh_summary(
    logger: logging.Logger,
    event_count: int,
    current_index: int,
    generation: int
) -> None:
    """
    Log the outcome of a successful event refresh.

    Args:
        logger: Logger instance
        event_count: Number of events now in rotation
        current_index: Slide index kept after the refresh
        generation: Image cache generation started by the refresh
    """
    logger.info(
        f"Events loaded: {event_count} events, showing index {current_index}, "
        f"image generation {generation}"
    )
