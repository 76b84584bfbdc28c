"""
Course completion trigger service
Applies aggregated progress to an enrollment and stamps completion once
"""
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from lms.config import settings
from lms.exceptions import LMSError, NotFoundError
from lms.schemas.records import EnrollmentRecord
from lms.services.data_access import data_access
from lms.services.progress_service import ProgressSnapshot, progress_service
from lms.utils.cache import cache_service
from lms.utils.timeutil import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionOutcome:
    enrollment: EnrollmentRecord
    snapshot: Optional[ProgressSnapshot]
    newly_completed: bool


class CompletionService:
    """
    Service deciding the completed transition of an enrollment

    Rules:
    - progress below threshold: persist progress only
    - progress reaching threshold: progress, completed and completed_at are
      written in one commit together with a course_completed notification
    - already completed: no-op until reset_progress is called
    """

    def __init__(self, threshold: Optional[int] = None):
        self.threshold = threshold if threshold is not None else settings.COMPLETION_THRESHOLD

    def apply_progress(
        self,
        db: Session,
        student_id: UUID,
        course_id: UUID,
        progress: int
    ) -> CompletionOutcome:
        """
        Apply a progress value to the enrollment of (student_id, course_id)

        Args:
            db: Database session
            student_id: Student UUID
            course_id: Subject UUID
            progress: Aggregated progress percentage

        Returns:
            CompletionOutcome with the enrollment as persisted

        Raises:
            NotFoundError: student is not enrolled
            PersistenceError: write failed, enrollment left unchanged
        """
        enrollment = data_access.get_enrollment(db, student_id, course_id)
        if not enrollment:
            raise NotFoundError("Enrollment not found")

        if enrollment.completed:
            logger.info(
                f"Enrollment already completed, skipping: student={student_id}, course={course_id}"
            )
            return CompletionOutcome(enrollment=enrollment, snapshot=None, newly_completed=False)

        progress = max(0, min(int(progress), 100))
        values = {"progress": progress}
        newly_completed = progress >= self.threshold

        if newly_completed:
            values["completed"] = True
            values["completed_at"] = utcnow()

        try:
            updated = data_access.update_enrollment(db, student_id, course_id, values)

            if newly_completed:
                subject = data_access.get_subject(db, course_id)
                data_access.create_notification(
                    db,
                    user_id=student_id,
                    type="course_completed",
                    title="Course Completed",
                    message=f'Congratulations! You have completed "{subject.name}".',
                    link="/progress"
                )

            data_access.commit(db, "update course progress")
        except LMSError:
            # progress, completion and notification land together or not at all
            db.rollback()
            raise

        cache_service.clear_analytics_cache()

        logger.info(
            f"Progress applied: student={student_id}, course={course_id}, "
            f"progress={progress}, completed={updated.completed}"
        )

        return CompletionOutcome(enrollment=updated, snapshot=None, newly_completed=newly_completed)

    def refresh(self, db: Session, student_id: UUID, course_id: UUID) -> CompletionOutcome:
        """Aggregate the current progress and apply it"""
        snapshot = progress_service.aggregate_course_progress(db, student_id, course_id)
        outcome = self.apply_progress(db, student_id, course_id, snapshot.percentage)
        return CompletionOutcome(
            enrollment=outcome.enrollment,
            snapshot=snapshot,
            newly_completed=outcome.newly_completed
        )

    def reset_progress(self, db: Session, student_id: UUID, course_id: UUID) -> EnrollmentRecord:
        """Explicitly clear progress and completion so aggregation applies again"""
        updated = data_access.update_enrollment(
            db,
            student_id,
            course_id,
            {"progress": 0, "completed": False, "completed_at": None}
        )
        data_access.commit(db, "reset course progress")
        cache_service.clear_analytics_cache()

        logger.info(f"Progress reset: student={student_id}, course={course_id}")
        return updated


# Global instance
completion_service = CompletionService()
