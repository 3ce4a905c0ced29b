"""Submission lifecycle: creation and review transitions.

    draft      (terminal; drafts are not resumed)
    pending -> approved
    pending -> rejected

Approve and reject are refused for any submission that is not pending.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from . import audit
from .config import ReviewConfig
from .db.repository import Database, Submission, SubmissionDetails
from .errors import (
    InvalidTransition,
    StoreError,
    SubmissionError,
    SubmissionNotFound,
    ValidationError,
)
from .logging import get_logger
from .mapper import RecordPayload
from .periods import format_period_label, parse_date

logger = get_logger(__name__)


class SubmissionStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.DRAFT: frozenset(),
    SubmissionStatus.PENDING: frozenset({SubmissionStatus.APPROVED, SubmissionStatus.REJECTED}),
    SubmissionStatus.APPROVED: frozenset(),
    SubmissionStatus.REJECTED: frozenset(),
}

INITIAL_STATUSES = frozenset({SubmissionStatus.DRAFT, SubmissionStatus.PENDING})


def can_transition(current: str, target: str) -> bool:
    """Whether a submission in ``current`` status may move to ``target``."""
    try:
        return SubmissionStatus(target) in TRANSITIONS[SubmissionStatus(current)]
    except ValueError:
        return False


@dataclass
class ApprovalItem:
    """A submission flattened for the approval queue."""

    id: int
    site_id: int | None
    site_name: str
    period: str
    submitted_by: str
    status: str
    submitted_at: str | None
    approved_at: str | None
    rejected_at: str | None
    reviewer: str | None
    review_comment: str | None

    @classmethod
    def from_submission(cls, submission: Submission) -> "ApprovalItem":
        return cls(
            id=submission.id,
            site_id=submission.site_id,
            site_name=submission.site_name or "Unknown Site",
            period=format_period_label(submission.period_start, submission.period_end),
            submitted_by=submission.submitted_by,
            status=submission.status,
            submitted_at=submission.submitted_at,
            approved_at=submission.reviewed_at if submission.status == "approved" else None,
            rejected_at=submission.reviewed_at if submission.status == "rejected" else None,
            reviewer=submission.reviewer,
            review_comment=submission.review_comment,
        )


class SubmissionLifecycle:
    """Create submissions and move them through review."""

    def __init__(self, db: Database, review: ReviewConfig | None = None):
        self.db = db
        self.review = review or ReviewConfig()

    # Creation

    def submit(
        self,
        site_id: int,
        period_start: date | str,
        period_end: date | str,
        payload: RecordPayload,
        submitted_by: str | None = None,
    ) -> int:
        """Create a submission awaiting approval."""
        return self.create(
            site_id, period_start, period_end, payload, SubmissionStatus.PENDING, submitted_by
        )

    def save_draft(
        self,
        site_id: int,
        period_start: date | str,
        period_end: date | str,
        payload: RecordPayload,
        submitted_by: str | None = None,
    ) -> int:
        """Create a draft submission."""
        return self.create(
            site_id, period_start, period_end, payload, SubmissionStatus.DRAFT, submitted_by
        )

    def create(
        self,
        site_id: int,
        period_start: date | str,
        period_end: date | str,
        payload: RecordPayload,
        initial_status: SubmissionStatus | str,
        submitted_by: str | None = None,
    ) -> int:
        """Validate input, then persist the header and its three detail rows.

        Raises:
            ValidationError: Missing site or period, unknown site, period
                start after end, or an initial status other than draft/pending.
            StoreError: If the store rejects any of the inserts.
        """
        try:
            status = SubmissionStatus(initial_status)
        except ValueError:
            raise ValidationError(f"Invalid initial status '{initial_status}'") from None
        if status not in INITIAL_STATUSES:
            raise ValidationError(f"Submissions cannot be created as '{status.value}'")

        if site_id is None:
            raise ValidationError("Site is required")
        if not period_start or not period_end:
            raise ValidationError("Reporting period is required")
        try:
            start = parse_date(period_start)
            end = parse_date(period_end)
        except ValueError as exc:
            raise ValidationError(f"Invalid reporting period: {exc}") from None
        if start > end:
            raise ValidationError(
                f"Period start {start.isoformat()} is after period end {end.isoformat()}"
            )
        if self.db.get_site(site_id) is None:
            raise ValidationError(f"Site {site_id} does not exist")

        user = submitted_by or self.review.submitter_name
        submission_id = self.db.create_submission(
            site_id=site_id,
            period_start=start.isoformat(),
            period_end=end.isoformat(),
            submitted_by=user,
            environmental_fields=payload.environmental,
            social_fields=payload.social,
            governance_fields=payload.governance,
            initial_status=status.value,
        )

        audit.log_submission_created(
            submission_id=submission_id,
            site_id=site_id,
            period_start=start.isoformat(),
            period_end=end.isoformat(),
            status=status.value,
            user=user,
        )
        return submission_id

    # Review transitions

    def approve(self, submission_id: int, reviewer: str | None = None) -> Submission:
        """Approve a pending submission; clears any review comment."""
        reviewer = reviewer or self.review.reviewer_name
        submission = self._transition(submission_id, SubmissionStatus.APPROVED, reviewer, None)
        audit.log_submission_approved(submission_id, reviewer=reviewer)
        return submission

    def reject(
        self,
        submission_id: int,
        comment: str,
        reviewer: str | None = None,
    ) -> Submission:
        """Reject a pending submission. A non-blank comment is required."""
        if not comment or not comment.strip():
            raise ValidationError("A rejection reason is required")
        reviewer = reviewer or self.review.reviewer_name
        submission = self._transition(
            submission_id, SubmissionStatus.REJECTED, reviewer, comment
        )
        audit.log_submission_rejected(submission_id, reason=comment, reviewer=reviewer)
        return submission

    def _transition(
        self,
        submission_id: int,
        target: SubmissionStatus,
        reviewer: str,
        comment: str | None,
    ) -> Submission:
        try:
            current = self.db.get_submission(submission_id)
            if current is None:
                raise SubmissionNotFound(submission_id)
            if not can_transition(current.status, target.value):
                raise InvalidTransition(submission_id, current.status, target.value)

            updated = self.db.update_status(
                submission_id,
                target.value,
                reviewer,
                comment,
                expected_status=current.status,
            )
            # Status changed between the read and the write
            latest = self.db.get_submission(submission_id) if updated is None else None
        except StoreError as exc:
            raise SubmissionError("Failed to update submission status") from exc

        if updated is None:
            if latest is None:
                raise SubmissionNotFound(submission_id)
            raise InvalidTransition(submission_id, latest.status, target.value)

        logger.info(
            "Submission status changed",
            submission_id=submission_id,
            from_status=current.status,
            to_status=target.value,
            reviewer=reviewer,
        )
        return updated

    # Queries

    def get_details(self, submission_id: int) -> SubmissionDetails:
        """Get a submission with its detail rows."""
        return self.db.fetch_submission_details(submission_id)

    def approval_queue(self, status: str | None = None) -> list[ApprovalItem]:
        """Submissions for review, most recently updated first."""
        return [
            ApprovalItem.from_submission(s) for s in self.db.fetch_submissions(status=status)
        ]
