"""Result model for evaluating one job alert against one posting."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class MatchResult:
    """Outcome of ``CriteriaMatcher.evaluate``.

    Attributes:
        criteria_id: Id of the evaluated alert (None for unsaved criteria)
        job_id: Id of the evaluated posting
        checked: Dimensions the alert specifies, in evaluation order
        passed: Checked dimensions the posting satisfied
        failed: Checked dimensions the posting did not satisfy
        matched_keywords: Alert keywords found in the posting text
    """

    criteria_id: object
    job_id: str
    checked: List[str] = field(default_factory=list)
    passed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    matched_keywords: List[str] = field(default_factory=list)

    @property
    def is_match(self) -> bool:
        """True when no specified dimension failed."""
        return not self.failed

    @property
    def summary(self) -> str:
        if self.is_match:
            if not self.checked:
                return "matched (no dimensions specified)"
            return f"matched on {', '.join(self.passed)}"
        return f"failed on {', '.join(self.failed)}"
