"""
Progress and performance analytics API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from lms.api.deps import get_context
from lms.context import RequestContext
from lms.database import get_db
from lms.schemas.analytics import CourseCompletion, Overview, PerformanceTrend, StudentSummary
from lms.services.analytics_service import analytics_service

router = APIRouter(prefix="/api/analytics", tags=["analytics"])
logger = logging.getLogger(__name__)


@router.get("/students/{student_id}", response_model=StudentSummary)
async def get_student_summary(
    student_id: UUID,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Progress summary for a student

    Returns:
    - Quiz statistics (count, average and highest percentage)
    - Progress, completion and certificate per enrolled course
    """
    context.require_self_or_staff(student_id)
    logger.info(f"Fetching analytics summary for student {student_id}")

    return StudentSummary(**analytics_service.get_student_summary(db, student_id))


@router.get("/courses/completion", response_model=List[CourseCompletion])
async def get_course_completion(
    limit: int = Query(10, ge=1, le=100),
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Completion rate per course, most enrolled first"""
    context.require_staff()
    return [CourseCompletion(**row) for row in analytics_service.get_course_completion_rates(db, limit)]


@router.get("/trends", response_model=List[PerformanceTrend])
async def get_performance_trends(
    days: int = Query(30, ge=1, le=365),
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Average quiz score per day"""
    context.require_staff()
    return [PerformanceTrend(**row) for row in analytics_service.get_performance_trends(db, days)]


@router.get("/overview", response_model=Overview)
async def get_overview(
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Platform-wide totals"""
    context.require_staff()
    return Overview(**analytics_service.get_overview(db))
