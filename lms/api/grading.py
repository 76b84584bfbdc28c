"""
Assignment submission and grading API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from lms.api.deps import get_context
from lms.context import RequestContext
from lms.database import get_db
from lms.schemas.grading import (
    AssignmentSubmit,
    BulkGradeItem,
    BulkGradeRequest,
    BulkGradeResponse,
    GradeRequest,
    GradingQueueResponse,
)
from lms.schemas.records import SubmissionRecord
from lms.services.grading_service import grading_service

router = APIRouter(prefix="/api", tags=["grading"])
logger = logging.getLogger(__name__)


@router.post("/assignments/{assignment_id}/submit", response_model=SubmissionRecord)
async def submit_assignment(
    assignment_id: UUID,
    payload: AssignmentSubmit,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Hand in work for an assignment (flagged late after the due date)"""
    return grading_service.submit_assignment(db, context, assignment_id, payload.submission_text)


@router.get("/grading/queue", response_model=GradingQueueResponse)
async def grading_queue(
    own_only: bool = False,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Submitted work awaiting a grade, oldest first"""
    submissions = grading_service.grading_queue(db, context, own_only=own_only)
    return GradingQueueResponse(submissions=submissions, total=len(submissions))


@router.post("/grading/submissions/{submission_id}", response_model=SubmissionRecord)
async def grade_submission(
    submission_id: UUID,
    request: GradeRequest,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Grade one submission

    - 0 <= grade <= assignment points, otherwise 422 and nothing changes
    - Notifies the student
    """
    return grading_service.grade_submission(
        db, context, submission_id, request.grade, request.feedback
    )


@router.post("/grading/bulk", response_model=BulkGradeResponse)
async def bulk_grade(
    request: BulkGradeRequest,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Apply one grade and feedback to several submissions

    Items that fail validation are skipped and reported; the rest are graded
    one by one, each with its own notification.
    """
    result = grading_service.bulk_grade(
        db, context, request.submission_ids, request.grade, request.feedback
    )

    return BulkGradeResponse(
        message=f"Graded {len(result.graded)} of {len(request.submission_ids)} submissions",
        graded=result.graded,
        skipped=[BulkGradeItem(**item) for item in result.skipped],
        failed=[BulkGradeItem(**item) for item in result.failed]
    )
