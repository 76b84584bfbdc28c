"""
Content progress and course progress API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional
import logging

from lms.api.deps import get_context
from lms.context import RequestContext
from lms.database import get_db
from lms.schemas.progress import ContentProgressUpdate, ContentProgressResponse, CourseProgress
from lms.schemas.records import EnrollmentRecord
from lms.services.completion_service import completion_service
from lms.services.data_access import data_access
from lms.services.enrollment_service import enrollment_service
from lms.services.progress_service import progress_service

router = APIRouter(prefix="/api/progress", tags=["progress"])
logger = logging.getLogger(__name__)


@router.put("/content/{content_id}", response_model=ContentProgressResponse)
async def update_content_progress(
    content_id: UUID,
    update: ContentProgressUpdate,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Record progress on a content item

    - Upserts the (student, content) progress row
    - Re-aggregates course progress when enrolled
    - Marks the course completed once progress reaches the threshold
    """
    record, outcome = enrollment_service.update_content_progress(
        db,
        context,
        content_id,
        completion_percentage=update.completion_percentage,
        completed=update.completed,
        time_spent_seconds=update.time_spent_seconds,
        last_position=update.last_position
    )

    if outcome is None:
        return ContentProgressResponse(message="Progress saved", record=record)

    return ContentProgressResponse(
        message="Course completed!" if outcome.newly_completed else "Progress updated successfully",
        record=record,
        enrollment=outcome.enrollment,
        course_progress=outcome.enrollment.progress,
        newly_completed=outcome.newly_completed
    )


@router.get("/courses/{course_id}", response_model=CourseProgress)
async def get_course_progress(
    course_id: UUID,
    student_id: Optional[UUID] = None,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Aggregated progress of a student in a course

    Computed from content progress records; quiz statistics cover the
    course's quizzes.
    """
    student_id = student_id or context.user_id
    context.require_self_or_staff(student_id)
    data_access.get_subject(db, course_id)

    snapshot = progress_service.aggregate_course_progress(db, student_id, course_id)
    enrollment = data_access.get_enrollment(db, student_id, course_id)
    quiz_summary = progress_service.summarize_quiz_attempts(
        data_access.list_quiz_attempts(db, student_id=student_id, subject_id=course_id)
    )

    return CourseProgress(
        student_id=student_id,
        course_id=course_id,
        total_items=snapshot.total_items,
        completed_items=snapshot.completed_items,
        percentage=snapshot.percentage,
        enrolled=enrollment is not None,
        completed=bool(enrollment and enrollment.completed),
        total_quizzes=quiz_summary.total_quizzes,
        average_quiz_score=quiz_summary.average_score
    )


@router.post("/courses/{course_id}/reset", response_model=EnrollmentRecord)
async def reset_course_progress(
    course_id: UUID,
    student_id: Optional[UUID] = None,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Clear progress and completion of an enrollment so it is tracked again"""
    student_id = student_id or context.user_id
    context.require_self_or_staff(student_id)

    logger.info(f"Progress reset requested by {context.user_id} for student={student_id}, course={course_id}")
    return completion_service.reset_progress(db, student_id, course_id)
