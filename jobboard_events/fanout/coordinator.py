"""Fan-out of job postings and application events into notifications.

A job posting is evaluated against every active alert on a bounded thread
pool. Each candidate is isolated: a failed evaluation or write is recorded in
the ``FanoutResult`` and the remaining candidates carry on. Nothing raised by
a pass ever reaches the caller that triggered it.
"""

import contextvars
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional

from jobboard_events.config.models import FanoutConfig
from jobboard_events.domain.models import (
    Actor,
    Application,
    CriteriaRecord,
    JobPosting,
    NotificationInput,
    NotificationRecord,
    NotificationType,
    Priority,
)
from jobboard_events.logging import get_logger, log_context
from jobboard_events.matching import CriteriaMatcher
from jobboard_events.notifications import NotificationWriter, TemplateRenderer
from jobboard_events.persistence import CriteriaRepository, get_session

from .models import CandidateOutcome, FanoutFailure, FanoutResult

logger = get_logger(__name__, component="fanout")

HIGH_PRIORITY_STATUSES = {"accepted"}


class FanoutCoordinator:
    """Drives job-alert fan-out and the single-recipient application events.

    Args:
        config: Fan-out settings (worker count, background mode, prefilter)
        writer: Notification writer (default writes through ``get_session``)
        matcher: Criteria matcher
        renderer: Template renderer for titles and bodies
        session_factory: Session context manager used to load alerts
    """

    def __init__(
        self,
        config: Optional[FanoutConfig] = None,
        writer: Optional[NotificationWriter] = None,
        matcher: Optional[CriteriaMatcher] = None,
        renderer: Optional[TemplateRenderer] = None,
        session_factory: Optional[Callable] = None,
    ):
        self.config = config or FanoutConfig()
        self.writer = writer or NotificationWriter(session_factory=session_factory)
        self.matcher = matcher or CriteriaMatcher()
        self.renderer = renderer or TemplateRenderer()
        self.session_factory = session_factory or get_session

        self._workers = ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="fanout-worker"
        )
        self._dispatcher = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fanout-dispatch")
        self._lock = threading.Lock()
        self._closed = False

    # Job alerts

    def dispatch_job_alerts(self, job: JobPosting) -> FanoutResult:
        """Evaluate every active alert against ``job`` and notify the matches.

        Blocks until the pass finishes. Never raises.
        """
        event_id = uuid.uuid4().hex[:12]
        with log_context(event_id=event_id, job_id=job.id):
            result = FanoutResult(job_id=job.id)
            try:
                candidates = self._load_candidates(job)
            except Exception as e:
                result.error = f"Failed to load job alerts: {e}"
                logger.error(
                    result.error,
                    exc_info=True,
                    extra={"event": "fanout.load.failed", "error_type": type(e).__name__},
                )
                return result

            result.evaluated = len(candidates)
            try:
                for outcome in self._run_candidates(candidates, job):
                    self._record(result, outcome)
            except Exception as e:
                result.error = f"Fan-out aborted: {e}"
                logger.error(
                    result.error,
                    exc_info=True,
                    extra={"event": "fanout.aborted", "error_type": type(e).__name__},
                )

            log_method = logger.info if result.is_complete else logger.warning
            log_method(
                f"Fan-out for job {job.id}: {result.matched}/{result.evaluated} alerts matched, "
                f"{len(result.notified)} notified, {len(result.failed)} failed",
                extra={"event": "fanout.completed", **result.to_log_dict()},
            )
            return result

    def submit_job_alerts(self, job: JobPosting) -> "Future[FanoutResult]":
        """Start a fan-out pass without waiting for it.

        With ``background`` disabled the pass runs inline and the returned
        future is already resolved.
        """
        if not self.config.background:
            future: Future = Future()
            future.set_result(self.dispatch_job_alerts(job))
            return future

        ctx = contextvars.copy_context()
        with self._lock:
            if self._closed:
                raise RuntimeError("FanoutCoordinator has been shut down")
            return self._dispatcher.submit(ctx.run, self.dispatch_job_alerts, job)

    def _load_candidates(self, job: JobPosting) -> List[CriteriaRecord]:
        with self.session_factory() as session:
            repo = CriteriaRepository(session)
            if self.config.prefilter:
                return repo.list_active(category=job.category, job_type=job.job_type)
            return repo.list_active()

    def _run_candidates(self, candidates: List[CriteriaRecord], job: JobPosting):
        futures = {
            # Each task gets its own copy; a Context cannot be entered by two threads at once
            self._workers.submit(contextvars.copy_context().run, self._process_candidate, c, job): c
            for c in candidates
        }
        for future in as_completed(futures):
            criteria = futures[future]
            try:
                yield future.result()
            except Exception as e:
                yield CandidateOutcome(
                    criteria_id=criteria.id, recipient_id=criteria.owner_id, error=e
                )

    def _process_candidate(self, criteria: CriteriaRecord, job: JobPosting) -> CandidateOutcome:
        outcome = CandidateOutcome(criteria_id=criteria.id, recipient_id=criteria.owner_id)
        if not self.matcher.matches(criteria, job):
            return outcome

        outcome.matched = True
        try:
            rendered = self.renderer.render_job_alert(job.title, job.company)
            outcome.notification = self.writer.write(
                NotificationInput(
                    recipient_id=criteria.owner_id,
                    type=NotificationType.JOB_ALERT,
                    title=rendered.title,
                    message=rendered.message,
                    link=f"/jobs/{job.id}",
                    related_job_id=job.id,
                    priority=Priority.NORMAL,
                    metadata={"alert_id": criteria.id},
                )
            )
        except Exception as e:
            outcome.error = e
        return outcome

    def _record(self, result: FanoutResult, outcome: CandidateOutcome) -> None:
        if outcome.matched:
            result.matched += 1

        if outcome.error is not None:
            result.failed.append(
                FanoutFailure(
                    recipient_id=outcome.recipient_id,
                    criteria_id=outcome.criteria_id,
                    error=str(outcome.error),
                )
            )
            logger.error(
                f"Job alert {outcome.criteria_id} for {outcome.recipient_id} failed: {outcome.error}",
                exc_info=outcome.error,
                extra={
                    "event": "fanout.candidate.failed",
                    "criteria_id": outcome.criteria_id,
                    "recipient_id": outcome.recipient_id,
                    "error_type": type(outcome.error).__name__,
                },
            )
        elif outcome.notification is not None:
            result.notified.append(outcome.recipient_id)
            result.notification_ids.append(outcome.notification.id)

    # Application events

    def notify_status_change(
        self, application: Application, old_status: str, actor: Optional[Actor] = None
    ) -> Optional[NotificationRecord]:
        """Notify the applicant that their application moved to a new status.

        Returns:
            The stored notification, or None when the status did not change or
            the notification could not be written
        """
        new_status = application.status
        old_status = (old_status or "").strip().lower()
        if old_status == new_status:
            logger.debug(
                f"Status of application {application.id} unchanged ({new_status}); no notification",
                extra={"event": "status_change.unchanged", "application_id": application.id},
            )
            return None

        with log_context(application_id=application.id, job_id=application.job_id):
            try:
                rendered = self.renderer.render_status_update(application.job_title, new_status)
                return self.writer.write(
                    NotificationInput(
                        recipient_id=application.applicant_id,
                        sender_id=actor.id if actor else None,
                        type=NotificationType.STATUS_UPDATE,
                        title=rendered.title,
                        message=rendered.message,
                        link="/jobseeker/my-applications",
                        related_job_id=application.job_id,
                        related_application_id=application.id,
                        priority=(
                            Priority.HIGH if new_status in HIGH_PRIORITY_STATUSES else Priority.NORMAL
                        ),
                        metadata={"old_status": old_status, "new_status": new_status},
                    )
                )
            except Exception as e:
                logger.error(
                    f"Status change notification for application {application.id} failed: {e}",
                    exc_info=True,
                    extra={
                        "event": "status_change.notification.failed",
                        "recipient_id": application.applicant_id,
                        "error_type": type(e).__name__,
                    },
                )
                return None

    def notify_application_submitted(
        self, application: Application, applicant_name: Optional[str] = None
    ) -> Optional[NotificationRecord]:
        """Notify the employer that someone applied to their job.

        Returns:
            The stored notification, or None if the employer is unknown or the
            write failed
        """
        if not application.employer_id:
            logger.warning(
                f"Application {application.id} has no employer; no notification",
                extra={"event": "application.notification.skipped", "application_id": application.id},
            )
            return None

        with log_context(application_id=application.id, job_id=application.job_id):
            try:
                rendered = self.renderer.render_application(applicant_name, application.job_title)
                return self.writer.write(
                    NotificationInput(
                        recipient_id=application.employer_id,
                        sender_id=application.applicant_id,
                        type=NotificationType.APPLICATION,
                        title=rendered.title,
                        message=rendered.message,
                        link=f"/employer/manage-applications?jobId={application.job_id}",
                        related_job_id=application.job_id,
                        related_application_id=application.id,
                    )
                )
            except Exception as e:
                logger.error(
                    f"Application notification for {application.id} failed: {e}",
                    exc_info=True,
                    extra={
                        "event": "application.notification.failed",
                        "recipient_id": application.employer_id,
                        "error_type": type(e).__name__,
                    },
                )
                return None

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting background passes and release the thread pools."""
        with self._lock:
            self._closed = True
        self._dispatcher.shutdown(wait=wait)
        self._workers.shutdown(wait=wait)
        logger.info("Fan-out coordinator stopped", extra={"event": "fanout.shutdown"})
