"""
Scheduler
Daily refresh of fund data from the upstream open datasets
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
import pytz

from fund_twr.config import settings
from fund_twr.services.ingestion_service import IngestionService

logger = logging.getLogger(__name__)


class FundDataScheduler:
    """
    Orchestration only: the job wraps IngestionService and never raises.
    """

    def __init__(self, ingestion_service: IngestionService):
        self.ingestion_service = ingestion_service
        self.scheduler = AsyncIOScheduler(timezone=pytz.timezone(settings.TIMEZONE))

    async def daily_refresh_job(self):
        """Refresh all category groups"""
        logger.info("📅 Running daily fund data refresh")
        try:
            await self.ingestion_service.refresh_all()
        except Exception as exc:
            logger.warning(f"Daily refresh job failed safely: {exc}")

    def start(self):
        """Register jobs and start"""
        self.scheduler.add_job(
            self.daily_refresh_job,
            trigger=CronTrigger(
                hour=settings.INGESTION_CRON_HOUR,
                minute=settings.INGESTION_CRON_MINUTE,
            ),
            id="daily_fund_refresh",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("✅ Scheduler started with daily fund refresh")

    def stop(self):
        """Stop scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("🛑 Scheduler shut down")
