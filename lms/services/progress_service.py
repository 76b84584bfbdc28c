"""
Progress aggregation service
Derives course progress from content-progress records and summarizes quiz attempts
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from lms.schemas.records import ContentProgressRecord, QuizAttemptRecord
from lms.services.data_access import data_access

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressSnapshot:
    """Aggregated progress of one student in one course"""
    student_id: UUID
    course_id: UUID
    total_items: int
    completed_items: int
    percentage: int


@dataclass(frozen=True)
class QuizSummary:
    total_quizzes: int
    average_score: float
    highest_score: float


class ProgressService:
    """
    Service for aggregating per-student progress

    Progress = completed content items / content items of the course * 100,
    rounded half up. A course without content has progress 0.
    """

    COMPLETION_PERCENTAGE = 100

    def compute_progress(self, total_items: int, completed_items: int) -> int:
        """
        Percentage of completed items

        Args:
            total_items: Number of content items in the course
            completed_items: Number of those items the student completed

        Returns:
            Integer percentage in [0, 100]
        """
        if total_items <= 0:
            return 0

        completed_items = max(0, min(completed_items, total_items))
        return int(math.floor(completed_items / total_items * 100 + 0.5))

    def aggregate_course_progress(self, db: Session, student_id: UUID, course_id: UUID) -> ProgressSnapshot:
        """
        Aggregate a student's progress in a course

        Only progress records that reference content items of this course
        are counted. Nothing is persisted.
        """
        content_ids = data_access.list_content_ids(db, course_id)
        records = data_access.list_content_progress(db, student_id, content_ids)

        completed_items = sum(1 for r in records if r.completed)
        percentage = self.compute_progress(len(content_ids), completed_items)

        logger.debug(
            f"Aggregated progress: student={student_id}, course={course_id}, "
            f"{completed_items}/{len(content_ids)} -> {percentage}%"
        )

        return ProgressSnapshot(
            student_id=student_id,
            course_id=course_id,
            total_items=len(content_ids),
            completed_items=completed_items,
            percentage=percentage
        )

    def record_content_progress(
        self,
        db: Session,
        student_id: UUID,
        content_id: UUID,
        completion_percentage: int,
        completed: bool = False,
        time_spent_seconds: int = 0,
        last_position: Optional[str] = None,
        progress_type: Optional[str] = None
    ) -> ContentProgressRecord:
        """
        Upsert the student's progress on one content item

        A record reaching the completion percentage counts as completed even
        when the caller did not set the flag. The caller commits.
        """
        content = data_access.get_content(db, content_id)
        is_completed = completed or completion_percentage >= self.COMPLETION_PERCENTAGE

        return data_access.upsert_content_progress(
            db,
            student_id=student_id,
            content_id=content_id,
            progress_type=progress_type or content.content_type,
            completion_percentage=self.COMPLETION_PERCENTAGE if is_completed else completion_percentage,
            completed=is_completed,
            time_spent_seconds=time_spent_seconds,
            last_position=last_position
        )

    def summarize_quiz_attempts(self, attempts: List[QuizAttemptRecord]) -> QuizSummary:
        """Count, average and best percentage over completed attempts"""
        scores = [a.percentage for a in attempts if a.completed_at is not None and a.max_score > 0]

        if not scores:
            return QuizSummary(total_quizzes=0, average_score=0.0, highest_score=0.0)

        return QuizSummary(
            total_quizzes=len(scores),
            average_score=round(sum(scores) / len(scores), 2),
            highest_score=round(max(scores), 2)
        )


# Global instance
progress_service = ProgressService()
