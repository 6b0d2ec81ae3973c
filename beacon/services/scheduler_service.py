import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger


logger = logging.getLogger(__name__)

TICK_JOB_ID = "slideshow_tick"


class TickScheduler:
    """Fixed-rate scheduler emitting slideshow ticks"""

    def __init__(self, tick_job: Callable[[], Awaitable[None]], interval: timedelta):
        self.scheduler: AsyncIOScheduler | None = None
        self._tick_job = tick_job
        self.interval = interval

    def start(self) -> None:
        """Start the scheduler with the tick job"""
        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        if self.interval <= timedelta(0):
            raise ValueError(f"Tick interval must be positive, got {self.interval}")

        self.scheduler = AsyncIOScheduler(timezone='UTC')
        self.scheduler.add_job(
            self._tick_job,
            trigger=IntervalTrigger(seconds=self.interval.total_seconds()),
            id=TICK_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=1,
        )

        self.scheduler.start()
        logger.info(
            "Tick scheduler started every %sms",
            int(self.interval.total_seconds() * 1000),
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self.scheduler = None

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled tick time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job(TICK_JOB_ID)
        return job.next_run_time if job else None
