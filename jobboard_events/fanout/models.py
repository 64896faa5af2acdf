"""Result models for notification fan-out."""

from dataclasses import dataclass, field
from typing import List, Optional

from jobboard_events.domain.models import NotificationRecord


@dataclass
class FanoutFailure:
    """One candidate whose evaluation or notification write failed."""

    recipient_id: str
    criteria_id: Optional[int]
    error: str


@dataclass
class CandidateOutcome:
    """Outcome of processing one alert inside a fan-out pass."""

    criteria_id: Optional[int]
    recipient_id: str
    matched: bool = False
    notification: Optional[NotificationRecord] = None
    error: Optional[BaseException] = None


@dataclass
class FanoutResult:
    """Summary of one job-alert fan-out pass.

    Failures are reported here and never raised to the caller.

    Attributes:
        job_id: Posting that triggered the pass
        evaluated: Number of active alerts evaluated
        matched: Number of alerts that matched
        notified: Recipient ids that received a notification
        notification_ids: Ids of the stored notifications
        failed: Per-candidate failures
        error: Set when the pass could not run at all (e.g. alerts could not be loaded)
    """

    job_id: str
    evaluated: int = 0
    matched: int = 0
    notified: List[str] = field(default_factory=list)
    notification_ids: List[int] = field(default_factory=list)
    failed: List[FanoutFailure] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """True when every matched alert produced a notification."""
        return self.error is None and not self.failed

    def to_log_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "evaluated": self.evaluated,
            "matched": self.matched,
            "notified": len(self.notified),
            "failed": len(self.failed),
            "error": self.error,
        }
