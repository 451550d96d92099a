"""Background scheduler for periodic maintenance."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger

from .logging_config import get_logger

if TYPE_CHECKING:
    from .context import AppContext

logger = get_logger("scheduler")

STREAK_REFRESH_JOB_ID = "streak_refresh"


class BackgroundScheduler:
    """Runs the daily streak refresh so cached streaks decay on time."""

    def __init__(self, ctx: AppContext):
        """Initialize the scheduler with app context.

        Args:
            ctx: Application context with the tracker and config
        """
        self.ctx = ctx
        self.scheduler = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        hour = self.ctx.config.STREAK_REFRESH_HOUR
        self.scheduler = APScheduler()
        self.scheduler.add_job(
            func=self.refresh_streaks,
            trigger=CronTrigger(hour=hour, minute=1),
            id=STREAK_REFRESH_JOB_ID,
            name="Daily streak refresh",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Scheduled daily streak refresh at %02d:01", hour)

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def refresh_streaks(self) -> int:
        """Job body: recompute every cached streak; errors are logged, not raised."""
        try:
            changed = self.ctx.tracker.refresh_streaks()
        except Exception as exc:
            logger.error(f"Streak refresh failed: {exc}", exc_info=True)
            return 0
        logger.info(f"Streak refresh completed: {changed} habit(s) updated")
        return changed


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> BackgroundScheduler:
    """Create and optionally start a background scheduler."""
    scheduler = BackgroundScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler
