"""
Enrollment service - enroll, drop and content progress updates
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from lms.context import RequestContext
from lms.schemas.records import ContentProgressRecord, EnrollmentRecord
from lms.services.completion_service import CompletionOutcome, completion_service
from lms.services.data_access import data_access
from lms.services.progress_service import progress_service
from lms.utils.cache import cache_service

logger = logging.getLogger(__name__)


class EnrollmentService:
    """
    Enrollment lifecycle

    Dropping a course deletes the enrollment row. Content progress rows are
    keyed by (student, content) and survive the drop, so enrolling again
    recomputes progress from them; completion and certificate state do not
    survive.
    """

    def enroll(self, db: Session, context: RequestContext, subject_id: UUID) -> EnrollmentRecord:
        subject = data_access.get_subject(db, subject_id)
        student_id = context.user_id

        snapshot = progress_service.aggregate_course_progress(db, student_id, subject_id)
        enrollment = data_access.create_enrollment(
            db, student_id, subject_id, progress=snapshot.percentage
        )

        data_access.create_notification(
            db,
            user_id=student_id,
            type="course_enrolled",
            title="Course Enrolled",
            message=f'You have successfully enrolled in "{subject.name}"'
        )
        data_access.commit(db, "enroll in course")
        cache_service.clear_analytics_cache()

        logger.info(f"Student {student_id} enrolled in {subject_id} (progress={snapshot.percentage})")
        return enrollment

    def drop(self, db: Session, context: RequestContext, subject_id: UUID) -> bool:
        """Remove the enrollment; returns False when there was none"""
        removed = data_access.delete_enrollment(db, context.user_id, subject_id)
        if removed:
            data_access.commit(db, "drop course")
            cache_service.clear_analytics_cache()
            logger.info(f"Student {context.user_id} dropped {subject_id}")
        return removed

    def list_enrollments(
        self,
        db: Session,
        context: RequestContext,
        student_id: Optional[UUID] = None,
        completed: Optional[bool] = None
    ) -> List[EnrollmentRecord]:
        student_id = student_id or context.user_id
        context.require_self_or_staff(student_id)
        return data_access.list_enrollments(db, student_id=student_id, completed=completed)

    def update_content_progress(
        self,
        db: Session,
        context: RequestContext,
        content_id: UUID,
        completion_percentage: int,
        completed: bool = False,
        time_spent_seconds: int = 0,
        last_position: Optional[str] = None
    ) -> Tuple[ContentProgressRecord, Optional[CompletionOutcome]]:
        """
        Record progress on a content item and refresh the course enrollment

        The progress row is committed first. When the student is enrolled in
        the item's course, progress is re-aggregated and the completion
        trigger applied.
        """
        student_id = context.user_id
        record = progress_service.record_content_progress(
            db,
            student_id=student_id,
            content_id=content_id,
            completion_percentage=completion_percentage,
            completed=completed,
            time_spent_seconds=time_spent_seconds,
            last_position=last_position
        )
        data_access.commit(db, "save content progress")

        content = data_access.get_content(db, content_id)
        if not data_access.get_enrollment(db, student_id, content.subject_id):
            logger.info(f"Progress saved without enrollment: student={student_id}, content={content_id}")
            return record, None

        outcome = completion_service.refresh(db, student_id, content.subject_id)
        return record, outcome


# Global instance
enrollment_service = EnrollmentService()
