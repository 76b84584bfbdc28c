"""
Analytics service for student progress and course performance
"""
import logging
from collections import defaultdict
from datetime import timedelta
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.orm import Session

from lms.services.data_access import data_access
from lms.services.progress_service import progress_service
from lms.utils.cache import cache_service
from lms.utils.timeutil import utcnow

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Read-only reports over enrollments and quiz attempts

    Every public report goes through the Redis cache; writes that change
    the underlying rows clear it.
    """

    def get_student_summary(self, db: Session, student_id: UUID) -> Dict[str, Any]:
        """
        Quiz statistics and course progress of one student

        Args:
            db: Database session
            student_id: Student UUID

        Returns:
            Dictionary with quiz stats and one entry per enrollment
        """
        return cache_service.get_or_build(
            cache_service.generate_cache_key("student", student_id),
            lambda: self._build_student_summary(db, student_id)
        )

    def _build_student_summary(self, db: Session, student_id: UUID) -> Dict[str, Any]:
        quiz_summary = progress_service.summarize_quiz_attempts(
            data_access.list_quiz_attempts(db, student_id=student_id)
        )
        names = {s.id: s.name for s in data_access.list_subjects(db)}

        courses = [
            {
                "subject_id": str(e.subject_id),
                "subject_name": names.get(e.subject_id, ""),
                "progress": e.progress,
                "completed": e.completed,
                "completed_at": e.completed_at.isoformat() if e.completed_at else None,
                "certificate_url": e.certificate_url
            }
            for e in data_access.list_enrollments(db, student_id=student_id)
        ]

        logger.info(f"Built analytics summary for student {student_id}: {len(courses)} courses")

        return {
            "student_id": str(student_id),
            "total_quizzes": quiz_summary.total_quizzes,
            "average_score": quiz_summary.average_score,
            "highest_score": quiz_summary.highest_score,
            "completed_courses": sum(1 for c in courses if c["completed"]),
            "courses": courses
        }

    def get_course_completion_rates(self, db: Session, limit: int = 10) -> List[Dict[str, Any]]:
        """Enrolled, completed and completion rate per course, most enrolled first"""
        return cache_service.get_or_build(
            cache_service.generate_cache_key("completion", limit),
            lambda: self._build_completion_rates(db)[:limit]
        )

    def _build_completion_rates(self, db: Session) -> List[Dict[str, Any]]:
        rates = [
            {
                "subject_id": str(row["subject_id"]),
                "subject": row["subject"],
                "enrolled": row["enrolled"],
                "completed": row["completed"],
                "completion_rate": progress_service.compute_progress(row["enrolled"], row["completed"])
            }
            for row in data_access.enrollment_counts_by_subject(db)
        ]
        rates.sort(key=lambda r: r["enrolled"], reverse=True)
        return rates

    def get_performance_trends(self, db: Session, days: int = 30) -> List[Dict[str, Any]]:
        """Average quiz percentage and attempt count per day over the last `days` days"""
        return cache_service.get_or_build(
            cache_service.generate_cache_key("trends", days),
            lambda: self._build_trends(db, days)
        )

    def _build_trends(self, db: Session, days: int) -> List[Dict[str, Any]]:
        since = utcnow() - timedelta(days=days)

        by_date = defaultdict(list)
        for attempt in data_access.list_quiz_attempts(db, since=since):
            if attempt.max_score > 0:
                by_date[attempt.completed_at.date().isoformat()].append(attempt.percentage)

        return [
            {
                "date": date,
                "average_score": int(round(sum(scores) / len(scores))),
                "attempts": len(scores)
            }
            for date, scores in sorted(by_date.items())
        ]

    def get_overview(self, db: Session) -> Dict[str, Any]:
        """Platform-wide totals"""
        return cache_service.get_or_build(
            cache_service.generate_cache_key("overview"),
            lambda: self._build_overview(db)
        )

    def _build_overview(self, db: Session) -> Dict[str, Any]:
        rates = self._build_completion_rates(db)
        quiz_summary = progress_service.summarize_quiz_attempts(data_access.list_quiz_attempts(db))
        average_completion = sum(r["completion_rate"] for r in rates) / len(rates) if rates else 0

        return {
            "total_students": data_access.count_profiles(db, "student"),
            "total_courses": data_access.count_subjects(db),
            "average_completion": int(round(average_completion)),
            "average_score": int(round(quiz_summary.average_score))
        }


# Global instance
analytics_service = AnalyticsService()
