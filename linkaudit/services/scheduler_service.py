from typing import Any, Callable, Optional
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

JOB_ID = "schedule:link_audit"


def _parse_schedule(schedule: Any):
    """Return an APScheduler CronTrigger from a cron schedule string.

    Accepts crontab strings like '0 8 * * *'. Returns None if the schedule is
    empty or cannot be parsed.
    """
    if schedule is None:
        return None
    if isinstance(schedule, str):
        if not schedule.strip():
            return None
        try:
            return CronTrigger.from_crontab(schedule.strip())
        except Exception:
            logger.exception("Error parsing cron schedule: %s", schedule)
            return None
    logger.warning("Unsupported schedule format: %s (only cron strings supported)", type(schedule))
    return None


class SchedulerService:
    """Runs the scheduled link audit on a cron schedule in a background thread."""

    def __init__(self, run_callback: Callable[[], Any], schedule: Optional[str] = None, scheduler_factory: Callable[[], BackgroundScheduler] = BackgroundScheduler):
        self.run_callback = run_callback
        self.schedule = schedule
        self._scheduler_factory = scheduler_factory
        self._sched: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._sched is not None

    def start(self) -> bool:
        """Start the scheduler if a valid schedule is configured; returns whether it is running."""
        if self._sched is not None:
            return True
        trigger = _parse_schedule(self.schedule)
        if trigger is None:
            logger.info("No valid link audit schedule configured; scheduler not started")
            return False

        self._sched = self._scheduler_factory()
        self._sched.add_job(
            self._execute_scheduled_run,
            trigger=trigger,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._sched.start()
        logger.info("Scheduler started; link audit scheduled -> %s", self.schedule)
        return True

    def shutdown(self, wait: bool = True):
        if not self._sched:
            return
        try:
            self._sched.shutdown(wait=wait)
            logger.info("Scheduler shut down")
        finally:
            self._sched = None

    def _execute_scheduled_run(self):
        # APScheduler runs this in a worker thread; failures must not kill the job.
        try:
            result = self.run_callback()
        except Exception:
            logger.exception("Scheduled link audit crashed")
            return None
        if isinstance(result, dict) and not result.get("success", False):
            logger.error("Scheduled link audit failed: %s", result.get("error"))
        return result
