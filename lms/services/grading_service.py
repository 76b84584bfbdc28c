"""
Assignment grading service
Single and bulk grading with per-submission notifications
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from lms.context import RequestContext
from lms.exceptions import (
    ConflictError,
    LMSError,
    NotFoundError,
    ValidationError,
)
from lms.schemas.records import SubmissionRecord
from lms.services.data_access import data_access
from lms.utils.timeutil import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass
class BulkGradeResult:
    graded: List[SubmissionRecord] = field(default_factory=list)
    skipped: List[dict] = field(default_factory=list)  # validation problems, batch continues
    failed: List[dict] = field(default_factory=list)  # backend errors, batch continues


def format_score(value: float) -> str:
    """8.0 -> '8', 7.5 -> '7.5'"""
    return f"{value:g}"


class GradingService:
    """
    Service for grading assignment submissions

    State machine: submitted -> graded (terminal). A grade must satisfy
    0 <= grade <= assignment.points. Each graded submission notifies its
    student in the same commit as the grade.
    """

    def validate_grade(self, grade: Any, points: float) -> float:
        """
        Check a grade against the assignment ceiling

        Raises:
            ValidationError: not a finite number or outside [0, points]
        """
        try:
            value = float(grade)
        except (TypeError, ValueError):
            raise ValidationError("Grade must be a number")

        if math.isnan(value) or math.isinf(value):
            raise ValidationError("Grade must be a number")

        if value < 0 or value > points:
            raise ValidationError(f"Grade must be between 0 and {format_score(points)}")

        return value

    def _check_gradable(self, submission: SubmissionRecord) -> None:
        if submission.status == "graded":
            raise ConflictError("Submission has already been graded")
        if submission.status != "submitted":
            raise ValidationError("Only submitted work can be graded")

    def _apply_grade(
        self,
        db: Session,
        submission: SubmissionRecord,
        grade: float,
        feedback: Optional[str],
        grader_id: UUID
    ) -> SubmissionRecord:
        updated = data_access.update_submission(
            db,
            submission.id,
            {
                "grade": grade,
                "feedback": feedback,
                "status": "graded",
                "graded_at": utcnow(),
                "graded_by": grader_id,
            }
        )

        assignment = submission.assignment
        data_access.create_notification(
            db,
            user_id=submission.student_id,
            type="assignment_graded",
            title="Assignment Graded",
            message=(
                f'Your assignment "{assignment.title}" has been graded. '
                f"Score: {format_score(grade)}/{format_score(assignment.points)}"
            ),
            link=f"/assignments/{assignment.id}"
        )

        data_access.commit(db, "submit grade")
        return updated

    def grade_submission(
        self,
        db: Session,
        context: RequestContext,
        submission_id: UUID,
        grade: Any,
        feedback: Optional[str] = None
    ) -> SubmissionRecord:
        """
        Grade one submission

        Validation happens before any write; a rejected grade leaves the row
        untouched.
        """
        context.require_staff()

        submission = data_access.get_submission(db, submission_id)
        if not submission:
            raise NotFoundError("Submission not found")

        value = self.validate_grade(grade, submission.assignment.points)
        self._check_gradable(submission)

        updated = self._apply_grade(db, submission, value, feedback, context.user_id)

        logger.info(
            f"Submission graded: {submission_id}, grade={value}/{submission.assignment.points}, "
            f"grader={context.user_id}"
        )
        return updated

    def bulk_grade(
        self,
        db: Session,
        context: RequestContext,
        submission_ids: Iterable[UUID],
        grade: Any,
        feedback: Optional[str] = None
    ) -> BulkGradeResult:
        """
        Apply one grade and feedback to many submissions

        Items are processed sequentially and committed one by one. Items whose
        own point ceiling rejects the grade are skipped; backend failures are
        recorded and the batch carries on. Earlier items are never rolled back.
        """
        context.require_staff()
        result = BulkGradeResult()

        for submission_id in dict.fromkeys(submission_ids):
            submission = data_access.get_submission(db, submission_id)
            if not submission:
                result.skipped.append({"submission_id": submission_id, "reason": "Submission not found"})
                continue

            try:
                value = self.validate_grade(grade, submission.assignment.points)
                self._check_gradable(submission)
            except (ValidationError, ConflictError) as e:
                logger.warning(f"Bulk grade skipped {submission_id}: {e.message}")
                result.skipped.append({"submission_id": submission_id, "reason": e.message})
                continue

            try:
                result.graded.append(self._apply_grade(db, submission, value, feedback, context.user_id))
            except LMSError as e:
                logger.error(f"Bulk grade failed for {submission_id}: {e.message}")
                result.failed.append({"submission_id": submission_id, "reason": e.message})

        logger.info(
            f"Bulk grading done: graded={len(result.graded)}, skipped={len(result.skipped)}, "
            f"failed={len(result.failed)}"
        )
        return result

    def grading_queue(self, db: Session, context: RequestContext, own_only: bool = False) -> List[SubmissionRecord]:
        """Submitted work awaiting a grade, oldest first"""
        context.require_staff()
        teacher_id = context.user_id if own_only else None
        return data_access.list_submissions(db, status="submitted", teacher_id=teacher_id)

    def submit_assignment(
        self,
        db: Session,
        context: RequestContext,
        assignment_id: UUID,
        submission_text: Optional[str]
    ) -> SubmissionRecord:
        """
        Hand in (or re-hand in) work for an assignment

        draft/new -> submitted. Graded work cannot be resubmitted; late work is
        flagged, or rejected when the assignment disallows it.
        """
        assignment = data_access.get_assignment(db, assignment_id)

        if not submission_text or not submission_text.strip():
            raise ValidationError("Submission text is required")

        existing = data_access.find_submission(db, assignment_id, context.user_id)
        if existing and existing.status == "graded":
            raise ConflictError("Graded work cannot be resubmitted")

        now = utcnow()
        is_late = assignment.due_date is not None and now > to_naive_utc(assignment.due_date)
        if is_late and not assignment.allow_late_submission:
            raise ValidationError("The due date has passed and late submissions are not accepted")

        submission = data_access.save_submission(
            db,
            assignment_id,
            context.user_id,
            {
                "submission_text": submission_text,
                "status": "submitted",
                "submitted_at": now,
                "is_late": is_late,
            }
        )
        data_access.commit(db, "submit assignment")

        logger.info(f"Assignment submitted: assignment={assignment_id}, student={context.user_id}, late={is_late}")
        return submission


# Global instance
grading_service = GradingService()
