"""
Course catalogue and enrollment API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional
import logging

from lms.api.deps import get_context
from lms.context import RequestContext
from lms.database import get_db
from lms.schemas.course import (
    CourseListResponse, CourseDetailResponse, EnrollmentListResponse, DropResponse
)
from lms.schemas.records import EnrollmentRecord
from lms.services.data_access import data_access
from lms.services.enrollment_service import enrollment_service

router = APIRouter(prefix="/api/courses", tags=["courses"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=CourseListResponse)
async def list_courses(year_level: Optional[str] = None, db: Session = Depends(get_db)):
    """List courses, optionally for one year level (S1..S6)"""
    return CourseListResponse(courses=data_access.list_subjects(db, year_level=year_level))


@router.get("/enrollments", response_model=EnrollmentListResponse)
async def list_enrollments(
    student_id: Optional[UUID] = None,
    completed: Optional[bool] = None,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    List enrollments of the caller (or of a student, for staff)

    - completed=true lists the courses a certificate can be issued for
    """
    enrollments = enrollment_service.list_enrollments(
        db, context, student_id=student_id, completed=completed
    )
    return EnrollmentListResponse(enrollments=enrollments)


@router.get("/{course_id}", response_model=CourseDetailResponse)
async def get_course(course_id: UUID, db: Session = Depends(get_db)):
    """Course with its content items"""
    course = data_access.get_subject(db, course_id)
    return CourseDetailResponse(course=course, content=data_access.list_content(db, course_id))


@router.post("/{course_id}/enroll", response_model=EnrollmentRecord, status_code=201)
async def enroll(
    course_id: UUID,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Enroll the caller in a course

    - 409 if already enrolled
    - Progress starts from any content progress kept from earlier enrollments
    - Emits a course_enrolled notification
    """
    logger.info(f"Enroll request: user={context.user_id}, course={course_id}")
    return enrollment_service.enroll(db, context, course_id)


@router.delete("/{course_id}/enroll", response_model=DropResponse)
async def drop(
    course_id: UUID,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Drop a course

    The enrollment (with its completion and certificate link) is removed;
    content progress is kept and counts again on re-enrollment.
    """
    dropped = enrollment_service.drop(db, context, course_id)
    if not dropped:
        return DropResponse(message="Not enrolled in this course", dropped=False)

    return DropResponse(
        message="Dropped course. Content progress is kept; completion status and certificate are removed.",
        dropped=True
    )
