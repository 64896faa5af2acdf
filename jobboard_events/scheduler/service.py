"""Periodic maintenance jobs (retention purge of read notifications)."""

import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from jobboard_events.logging import get_logger

logger = get_logger(__name__, component="scheduler")

PURGE_JOB_ID = "notification-purge"


class MaintenanceScheduler:
    """
    Runs the notification retention purge on a fixed interval.

    Uses BackgroundScheduler so the main thread stays free to handle signals
    and coordinate shutdown. Runs never overlap and missed runs coalesce.
    """

    def __init__(
        self,
        purge_callable: Callable[[], int],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Args:
            purge_callable: Runs one purge and returns the number of deleted rows
            interval_seconds: Seconds between purges
            shutdown_event: Set when the scheduler shuts down
        """
        self.purge_callable = purge_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event
        self.last_purged: Optional[int] = None

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self, run_immediately: bool = True) -> None:
        """Register the purge job and start the scheduler thread."""
        next_run = datetime.now(timezone.utc) if run_immediately else None
        job_kwargs = {"next_run_time": next_run} if next_run is not None else {}

        self.scheduler.add_job(
            func=self.run_purge,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=PURGE_JOB_ID,
            name="Notification retention purge",
            replace_existing=True,
            **job_kwargs,
        )
        self.scheduler.start()

        logger.info(
            f"Maintenance scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "run_immediately": run_immediately,
            },
        )

    def run_purge(self) -> Optional[int]:
        """Run one purge in the current thread; failures are logged, not raised."""
        try:
            self.last_purged = self.purge_callable()
        except Exception as e:
            logger.error(
                f"Notification purge failed: {e}",
                exc_info=True,
                extra={"event": "scheduler.purge.failed", "error_type": type(e).__name__},
            )
            return None
        return self.last_purged

    def shutdown(self, wait: bool = False) -> None:
        """
        Stop the scheduler.

        Args:
            wait: If True, wait for a running purge to finish
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(PURGE_JOB_ID)
        return job.next_run_time if job else None
