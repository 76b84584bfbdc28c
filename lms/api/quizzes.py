"""
Quiz attempt API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from lms.api.deps import get_context
from lms.context import RequestContext
from lms.database import get_db
from lms.schemas.quiz import QuizAttemptComplete
from lms.schemas.records import QuizAttemptRecord
from lms.services.quiz_service import quiz_service

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)


@router.post("/{quiz_id}/attempts", response_model=QuizAttemptRecord, status_code=201)
async def start_attempt(
    quiz_id: UUID,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Start a new attempt at a quiz"""
    return quiz_service.start_attempt(db, context, quiz_id)


@router.post("/attempts/{attempt_id}/complete", response_model=QuizAttemptRecord)
async def complete_attempt(
    attempt_id: UUID,
    result: QuizAttemptComplete,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Record the final score of an attempt

    - 0 <= score <= max_score
    - 409 if the attempt was already completed (attempts are immutable)
    """
    return quiz_service.complete_attempt(
        db, context, attempt_id,
        score=result.score,
        max_score=result.max_score,
        answers=result.answers
    )
