"""
Periodic validation on top of APScheduler's BlockingScheduler.

A job never overlaps with itself: a comparison that outlasts its
interval delays the next run (missed runs are coalesced into one).
"""

import logging
from collections.abc import Callable
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


def interval_trigger(interval_seconds: int) -> IntervalTrigger:
    if interval_seconds < 1:
        raise ValueError(f"Interval must be at least 1 second, got {interval_seconds}")
    return IntervalTrigger(seconds=interval_seconds)


def cron_trigger(cron_expression: str) -> CronTrigger:
    """
    Trigger for a standard 5-field crontab line.

    Examples:
        "0 2 * * *"    - daily at 02:00
        "0 */6 * * *"  - every 6 hours
    """
    if len(cron_expression.split()) != 5:
        raise ValueError(
            f"Cron expression must have 5 parts: minute hour day month day_of_week "
            f"(got {cron_expression!r})"
        )
    return CronTrigger.from_crontab(cron_expression)


class ValidationScheduler:
    """Registers validation jobs and runs them until interrupted."""

    def __init__(self, scheduler: BlockingScheduler | None = None):
        self.scheduler = scheduler or BlockingScheduler()
        self.scheduler.add_listener(self._on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
        self.jobs = []

    @staticmethod
    def _on_job_event(event: JobExecutionEvent) -> None:
        if event.exception is not None:
            logger.error(f"Job '{event.job_id}' failed: {event.exception}")
        else:
            logger.info(f"Job '{event.job_id}' finished")

    def schedule(
        self,
        job_func: Callable,
        trigger: BaseTrigger,
        job_id: str,
        **kwargs
    ) -> None:
        """Register ``job_func(**kwargs)`` under ``job_id``, replacing any previous job."""
        job = self.scheduler.add_job(
            job_func,
            trigger=trigger,
            id=job_id,
            kwargs=kwargs,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.jobs.append(job)

    def add_interval_job(self, job_func: Callable, interval_seconds: int, job_id: str, **kwargs) -> None:
        self.schedule(job_func, interval_trigger(interval_seconds), job_id, **kwargs)
        logger.info(f"Added interval job '{job_id}' with {interval_seconds}s interval")

    def add_cron_job(self, job_func: Callable, cron_expression: str, job_id: str, **kwargs) -> None:
        self.schedule(job_func, cron_trigger(cron_expression), job_id, **kwargs)
        logger.info(f"Added cron job '{job_id}' with schedule '{cron_expression}'")

    def remove_job(self, job_id: str) -> None:
        self.scheduler.remove_job(job_id)
        self.jobs = [job for job in self.jobs if job.id != job_id]
        logger.info(f"Removed job '{job_id}'")

    def start(self) -> None:
        """Block and run jobs; Ctrl+C shuts the scheduler down cleanly."""
        logger.info(f"Starting validation scheduler with {len(self.jobs)} job(s)")
        try:
            self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped by user")
            self.stop()

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("Scheduler stopped")

    def list_jobs(self) -> list[dict[str, Any]]:
        """id, name, next run (ISO) and trigger of every registered job."""
        jobs = []
        for job in self.scheduler.get_jobs():
            # Pending jobs (scheduler not started) have no next_run_time yet
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run.isoformat() if next_run else None,
                "trigger": str(job.trigger),
            })
        return jobs
