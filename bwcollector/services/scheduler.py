"""
Scheduler Service.

Runs recurring jobs (the polling cycle, and any other periodic checker
such as a reachability pinger) on fixed intervals using APScheduler.
A job firing while its previous run is still in progress is skipped,
never run concurrently.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


class SchedulerService:
    """
    Scheduler for periodic jobs.

    Job defaults:
    - max_instances=1: an overdue trigger is skipped while the job runs
    - coalesce=True: missed runs collapse into one
    """

    def __init__(self, misfire_grace_time: int = 30) -> None:
        """Initialize scheduler."""
        self.scheduler = AsyncIOScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": misfire_grace_time,
            },
            timezone=timezone.utc,
        )
        self._jobs: dict[str, str] = {}  # job_name -> job_id

    def add_interval_job(
        self,
        job_name: str,
        func: JobFunc,
        interval_seconds: float,
        initial_delay: float = 0,
    ) -> str:
        """
        Add a job running ``func`` every ``interval_seconds``.

        Args:
            job_name: Unique name (e.g., "poll_cycle")
            func: Coroutine function called with no arguments
            interval_seconds: Fixed interval between runs
            initial_delay: Seconds before the first run (0 = run right away)

        Returns:
            str: Job ID
        """
        job_id = f"job_{job_name}"

        # Remove existing job if any
        if job_name in self._jobs:
            self.remove_job(job_name)

        first_run = datetime.now(timezone.utc) + timedelta(seconds=initial_delay)
        job = self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=interval_seconds),
            id=job_id,
            name=job_name,
            next_run_time=first_run,
            replace_existing=True,
        )

        self._jobs[job_name] = job.id
        logger.info(
            "Added job '%s' every %.1fs", job_name, interval_seconds,
        )
        return job.id

    def remove_job(self, job_name: str) -> bool:
        """Remove a scheduled job."""
        job_id = self._jobs.get(job_name)
        if job_id:
            self.scheduler.remove_job(job_id)
            del self._jobs[job_name]
            logger.info("Removed job '%s'", job_name)
            return True
        return False

    def get_jobs(self) -> list[dict[str, Any]]:
        """Get list of all scheduled jobs."""
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": str(job.next_run_time),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]

    def start(self) -> None:
        """Start the scheduler (needs a running event loop)."""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def shutdown(self) -> None:
        """Shutdown the scheduler without waiting for running jobs."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")


# Singleton instance
_scheduler_service: SchedulerService | None = None


def get_scheduler_service() -> SchedulerService:
    """Get or create scheduler service instance."""
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService()
    return _scheduler_service
