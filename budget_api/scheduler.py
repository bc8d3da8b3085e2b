# budget_api/scheduler.py
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from budget_api.db import Database
from budget_api.services.tokens import cleanup_expired_tokens

logger = logging.getLogger(__name__)


class CleanupScheduler:
    """Purges expired blacklist rows off the request path, every N minutes."""

    def __init__(self, db: Database, interval_minutes: int) -> None:
        self.db = db
        self.interval_minutes = interval_minutes
        self.scheduler = BackgroundScheduler(timezone="UTC")

    def run_once(self, source: str = "manual") -> int:
        with self.db.session() as session:
            removed = cleanup_expired_tokens(session)
        logger.info("token_cleanup: source=%s removed=%s", source, removed)
        return removed

    def _job(self) -> None:
        try:
            self.run_once("interval")
        except Exception:
            # keep the scheduler alive; the next run retries
            logger.exception("token_cleanup failed")

    def start(self) -> None:
        if self.interval_minutes <= 0:
            logger.info("token cleanup scheduler disabled")
            return
        # first pass runs right away on the scheduler thread
        self.scheduler.add_job(
            self._job,
            IntervalTrigger(minutes=self.interval_minutes),
            id="token_cleanup",
            replace_existing=True,
            misfire_grace_time=300,
            next_run_time=datetime.now(timezone.utc),
        )
        self.scheduler.start()
        logger.info(
            "Scheduler started: token cleanup every %s minute(s)", self.interval_minutes
        )

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
