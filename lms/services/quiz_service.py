"""
Quiz attempt service
"""
import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from lms.context import RequestContext
from lms.exceptions import ConflictError, ValidationError
from lms.schemas.records import QuizAttemptRecord
from lms.services.data_access import data_access
from lms.utils.cache import cache_service
from lms.utils.timeutil import utcnow

logger = logging.getLogger(__name__)


class QuizService:
    """Start and complete quiz attempts; a completed attempt never changes"""

    def start_attempt(self, db: Session, context: RequestContext, quiz_id: UUID) -> QuizAttemptRecord:
        data_access.get_quiz(db, quiz_id)
        attempt = data_access.create_quiz_attempt(db, context.user_id, quiz_id)
        data_access.commit(db, "start quiz attempt")

        logger.info(f"Quiz attempt started: {attempt.id} (quiz={quiz_id}, student={context.user_id})")
        return attempt

    def complete_attempt(
        self,
        db: Session,
        context: RequestContext,
        attempt_id: UUID,
        score: float,
        max_score: float,
        answers: Optional[Any] = None
    ) -> QuizAttemptRecord:
        attempt = data_access.get_quiz_attempt(db, attempt_id)
        context.require_self_or_staff(attempt.student_id)

        if attempt.completed_at is not None:
            raise ConflictError("Quiz attempt is already completed")
        if max_score <= 0:
            raise ValidationError("max_score must be positive")
        if score < 0 or score > max_score:
            raise ValidationError(f"Score must be between 0 and {max_score:g}")

        completed = data_access.finish_quiz_attempt(
            db, attempt_id, score=score, max_score=max_score, answers=answers, completed_at=utcnow()
        )
        data_access.commit(db, "complete quiz attempt")
        cache_service.clear_analytics_cache()

        logger.info(f"Quiz attempt completed: {attempt_id}, score={score}/{max_score}")
        return completed


# Global instance
quiz_service = QuizService()
