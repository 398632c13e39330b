import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config.settings import settings
from services.poller import AvailabilityPoller

logger = logging.getLogger(__name__)


class SchedulerService:
    """Service for managing the background polling job"""

    JOB_ID = "poll_appointments"

    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self.poller: Optional[AvailabilityPoller] = None

    def start(self, poller: AvailabilityPoller):
        """Start the scheduler with the appointment polling job, first run immediately"""
        self.poller = poller
        self._schedule_next(datetime.now(timezone.utc))

        self.scheduler.start()
        logger.info(f"Scheduler started, looking for appointments every {settings.REFRESH_DELAY_SECONDS} seconds")

    def _schedule_next(self, run_date: datetime):
        self.scheduler.add_job(
            self._run_cycle,
            "date",
            run_date=run_date,
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

    async def _run_cycle(self):
        """Run one poll cycle, then wait a full interval from when it ended"""
        try:
            self.poller.wake()
            await self.poller.run_cycle()
        finally:
            if self.scheduler.running:
                delay = settings.REFRESH_DELAY_SECONDS
                self._schedule_next(datetime.now(timezone.utc) + timedelta(seconds=delay))
                logger.debug(f"Next poll in {delay} seconds")

    def shutdown(self):
        """Shutdown the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")

    def is_running(self) -> bool:
        """Check if scheduler is running"""
        return self.scheduler.running if self.scheduler else False

    def poller_state(self) -> str:
        return self.poller.state.value if self.poller else "idle"


# Global scheduler instance
scheduler_service = SchedulerService()
