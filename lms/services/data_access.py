"""
Data access layer

Thin typed query/mutation wrappers over the application tables. Reads return
validated records from lms.schemas.records; writes flush inside the caller's
transaction and leave the commit to the calling workflow so that related rows
(e.g. a grade and its notification) land together.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lms.exceptions import ConflictError, NotFoundError, PersistenceError
from lms.models import (
    Assignment,
    AssignmentSubmission,
    ContentItem,
    ContentProgress,
    Enrollment,
    Notification,
    Profile,
    Quiz,
    QuizAttempt,
    Subject,
)
from lms.schemas.records import (
    AssignmentRecord,
    ContentProgressRecord,
    ContentRecord,
    EnrollmentRecord,
    NotificationRecord,
    ProfileRecord,
    QuizAttemptRecord,
    QuizRecord,
    SubjectRecord,
    SubmissionRecord,
)

logger = logging.getLogger(__name__)


def _row_dict(row: Any) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


class DataAccessService:
    """Typed wrappers around the ORM for every table the workflows touch"""

    # ------------------------------------------------------------------
    # Transaction helpers
    # ------------------------------------------------------------------

    def commit(self, db: Session, action: str) -> None:
        """Commit the session; on failure roll back and raise PersistenceError"""
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Commit failed during {action}: {str(e)}")
            raise PersistenceError(f"Failed to {action}") from e

    def _flush(self, db: Session, action: str) -> None:
        try:
            db.flush()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Integrity error during {action}: {str(e.orig)}")
            raise ConflictError(f"Cannot {action}: conflicting record exists") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Flush failed during {action}: {str(e)}")
            raise PersistenceError(f"Failed to {action}") from e

    # ------------------------------------------------------------------
    # Subjects & profiles
    # ------------------------------------------------------------------

    def list_subjects(self, db: Session, year_level: Optional[str] = None) -> List[SubjectRecord]:
        query = db.query(Subject)
        if year_level:
            query = query.filter(Subject.year_level == year_level)
        return [SubjectRecord.model_validate(s) for s in query.order_by(Subject.name).all()]

    def get_subject(self, db: Session, subject_id: UUID) -> SubjectRecord:
        subject = db.query(Subject).filter(Subject.id == subject_id).first()
        if not subject:
            raise NotFoundError("Course not found")
        return SubjectRecord.model_validate(subject)

    def count_subjects(self, db: Session) -> int:
        return db.query(func.count(Subject.id)).scalar() or 0

    def get_profile(self, db: Session, user_id: UUID) -> Optional[ProfileRecord]:
        profile = db.query(Profile).filter(Profile.id == user_id).first()
        return ProfileRecord.model_validate(profile) if profile else None

    def count_profiles(self, db: Session, role: str) -> int:
        return db.query(func.count(Profile.id)).filter(Profile.role == role).scalar() or 0

    # ------------------------------------------------------------------
    # Enrollments
    # ------------------------------------------------------------------

    def _enrollment_row(self, db: Session, student_id: UUID, subject_id: UUID) -> Optional[Enrollment]:
        return db.query(Enrollment).filter(
            Enrollment.student_id == student_id,
            Enrollment.subject_id == subject_id
        ).first()

    def get_enrollment(self, db: Session, student_id: UUID, subject_id: UUID) -> Optional[EnrollmentRecord]:
        enrollment = self._enrollment_row(db, student_id, subject_id)
        return EnrollmentRecord.model_validate(enrollment) if enrollment else None

    def list_enrollments(
        self,
        db: Session,
        student_id: Optional[UUID] = None,
        subject_id: Optional[UUID] = None,
        completed: Optional[bool] = None
    ) -> List[EnrollmentRecord]:
        query = db.query(Enrollment)
        if student_id is not None:
            query = query.filter(Enrollment.student_id == student_id)
        if subject_id is not None:
            query = query.filter(Enrollment.subject_id == subject_id)
        if completed is not None:
            query = query.filter(Enrollment.completed == completed)
        rows = query.order_by(Enrollment.enrolled_at.desc()).all()
        return [EnrollmentRecord.model_validate(e) for e in rows]

    def create_enrollment(
        self,
        db: Session,
        student_id: UUID,
        subject_id: UUID,
        progress: int = 0
    ) -> EnrollmentRecord:
        if self._enrollment_row(db, student_id, subject_id):
            raise ConflictError("Already enrolled in this course")

        enrollment = Enrollment(
            student_id=student_id,
            subject_id=subject_id,
            progress=progress,
            completed=False
        )
        db.add(enrollment)
        self._flush(db, "enroll in course")
        return EnrollmentRecord.model_validate(enrollment)

    def update_enrollment(
        self,
        db: Session,
        student_id: UUID,
        subject_id: UUID,
        values: Dict[str, Any]
    ) -> EnrollmentRecord:
        """Update the single row scoped by (student_id, subject_id)"""
        enrollment = self._enrollment_row(db, student_id, subject_id)
        if not enrollment:
            raise NotFoundError("Enrollment not found")

        for key, value in values.items():
            setattr(enrollment, key, value)
        self._flush(db, "update enrollment")
        return EnrollmentRecord.model_validate(enrollment)

    def delete_enrollment(self, db: Session, student_id: UUID, subject_id: UUID) -> bool:
        enrollment = self._enrollment_row(db, student_id, subject_id)
        if not enrollment:
            return False
        db.delete(enrollment)
        self._flush(db, "drop course")
        return True

    def enrollment_counts_by_subject(self, db: Session) -> List[Dict[str, Any]]:
        """Enrolled and completed counts for every subject"""
        subjects = db.query(Subject).order_by(Subject.name).all()
        enrollments = db.query(Enrollment.subject_id, Enrollment.completed).all()

        counts = {s.id: {"enrolled": 0, "completed": 0} for s in subjects}
        for subject_id, completed in enrollments:
            if subject_id in counts:
                counts[subject_id]["enrolled"] += 1
                if completed:
                    counts[subject_id]["completed"] += 1

        return [
            {
                "subject_id": s.id,
                "subject": s.name,
                "enrolled": counts[s.id]["enrolled"],
                "completed": counts[s.id]["completed"],
            }
            for s in subjects
        ]

    # ------------------------------------------------------------------
    # Content & content progress
    # ------------------------------------------------------------------

    def list_content(self, db: Session, subject_id: UUID) -> List[ContentRecord]:
        rows = db.query(ContentItem).filter(
            ContentItem.subject_id == subject_id
        ).order_by(ContentItem.created_at).all()
        return [ContentRecord.model_validate(c) for c in rows]

    def list_content_ids(self, db: Session, subject_id: UUID) -> List[UUID]:
        rows = db.query(ContentItem.id).filter(ContentItem.subject_id == subject_id).all()
        return [row[0] for row in rows]

    def get_content(self, db: Session, content_id: UUID) -> ContentRecord:
        content = db.query(ContentItem).filter(ContentItem.id == content_id).first()
        if not content:
            raise NotFoundError("Content item not found")
        return ContentRecord.model_validate(content)

    def list_content_progress(
        self,
        db: Session,
        student_id: UUID,
        content_ids: List[UUID]
    ) -> List[ContentProgressRecord]:
        if not content_ids:
            return []
        rows = db.query(ContentProgress).filter(
            ContentProgress.student_id == student_id,
            ContentProgress.content_id.in_(content_ids)
        ).all()
        return [ContentProgressRecord.model_validate(p) for p in rows]

    def upsert_content_progress(
        self,
        db: Session,
        student_id: UUID,
        content_id: UUID,
        progress_type: str,
        completion_percentage: int,
        completed: bool,
        time_spent_seconds: int = 0,
        last_position: Optional[str] = None
    ) -> ContentProgressRecord:
        """Insert or overwrite the single row for (student_id, content_id)"""
        record = db.query(ContentProgress).filter(
            ContentProgress.student_id == student_id,
            ContentProgress.content_id == content_id
        ).first()

        if not record:
            record = ContentProgress(student_id=student_id, content_id=content_id)
            db.add(record)

        record.progress_type = progress_type
        record.completion_percentage = completion_percentage
        record.completed = completed
        record.time_spent_seconds = time_spent_seconds
        record.last_position = last_position

        self._flush(db, "save content progress")
        return ContentProgressRecord.model_validate(record)

    # ------------------------------------------------------------------
    # Quizzes & attempts
    # ------------------------------------------------------------------

    def get_quiz(self, db: Session, quiz_id: UUID) -> QuizRecord:
        quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found")
        return QuizRecord.model_validate(quiz)

    def _attempt_row(self, db: Session, attempt_id: UUID) -> QuizAttempt:
        attempt = db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
        if not attempt:
            raise NotFoundError("Quiz attempt not found")
        return attempt

    def get_quiz_attempt(self, db: Session, attempt_id: UUID) -> QuizAttemptRecord:
        return QuizAttemptRecord.model_validate(self._attempt_row(db, attempt_id))

    def create_quiz_attempt(self, db: Session, student_id: UUID, quiz_id: UUID) -> QuizAttemptRecord:
        attempt = QuizAttempt(student_id=student_id, quiz_id=quiz_id, score=0.0, max_score=0.0)
        db.add(attempt)
        self._flush(db, "start quiz attempt")
        return QuizAttemptRecord.model_validate(attempt)

    def finish_quiz_attempt(
        self,
        db: Session,
        attempt_id: UUID,
        score: float,
        max_score: float,
        answers: Optional[Any],
        completed_at: datetime
    ) -> QuizAttemptRecord:
        attempt = self._attempt_row(db, attempt_id)
        attempt.score = score
        attempt.max_score = max_score
        attempt.answers = answers
        attempt.completed_at = completed_at
        self._flush(db, "complete quiz attempt")
        return QuizAttemptRecord.model_validate(attempt)

    def list_quiz_attempts(
        self,
        db: Session,
        student_id: Optional[UUID] = None,
        subject_id: Optional[UUID] = None,
        since: Optional[datetime] = None,
        completed_only: bool = True
    ) -> List[QuizAttemptRecord]:
        query = db.query(QuizAttempt)
        if student_id is not None:
            query = query.filter(QuizAttempt.student_id == student_id)
        if subject_id is not None:
            query = query.join(Quiz, Quiz.id == QuizAttempt.quiz_id).filter(Quiz.subject_id == subject_id)
        if completed_only:
            query = query.filter(QuizAttempt.completed_at.isnot(None))
        if since is not None:
            query = query.filter(QuizAttempt.completed_at >= since)
        rows = query.order_by(QuizAttempt.completed_at).all()
        return [QuizAttemptRecord.model_validate(a) for a in rows]

    # ------------------------------------------------------------------
    # Assignments & submissions
    # ------------------------------------------------------------------

    def get_assignment(self, db: Session, assignment_id: UUID) -> AssignmentRecord:
        assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
        if not assignment:
            raise NotFoundError("Assignment not found")
        return AssignmentRecord.model_validate(assignment)

    def _submission_record(self, submission: AssignmentSubmission, assignment: Assignment) -> SubmissionRecord:
        data = _row_dict(submission)
        data["assignment"] = AssignmentRecord.model_validate(assignment)
        return SubmissionRecord.model_validate(data)

    def get_submission(self, db: Session, submission_id: UUID) -> Optional[SubmissionRecord]:
        row = db.query(AssignmentSubmission, Assignment).join(
            Assignment, Assignment.id == AssignmentSubmission.assignment_id
        ).filter(AssignmentSubmission.id == submission_id).first()
        if not row:
            return None
        return self._submission_record(*row)

    def find_submission(
        self,
        db: Session,
        assignment_id: UUID,
        student_id: UUID
    ) -> Optional[SubmissionRecord]:
        row = db.query(AssignmentSubmission, Assignment).join(
            Assignment, Assignment.id == AssignmentSubmission.assignment_id
        ).filter(
            AssignmentSubmission.assignment_id == assignment_id,
            AssignmentSubmission.student_id == student_id
        ).first()
        if not row:
            return None
        return self._submission_record(*row)

    def list_submissions(
        self,
        db: Session,
        status: Optional[str] = None,
        teacher_id: Optional[UUID] = None
    ) -> List[SubmissionRecord]:
        query = db.query(AssignmentSubmission, Assignment).join(
            Assignment, Assignment.id == AssignmentSubmission.assignment_id
        )
        if status is not None:
            query = query.filter(AssignmentSubmission.status == status)
        if teacher_id is not None:
            query = query.filter(Assignment.teacher_id == teacher_id)
        rows = query.order_by(AssignmentSubmission.submitted_at.asc()).all()
        return [self._submission_record(s, a) for s, a in rows]

    def save_submission(
        self,
        db: Session,
        assignment_id: UUID,
        student_id: UUID,
        values: Dict[str, Any]
    ) -> SubmissionRecord:
        """Create or update the submission for (assignment_id, student_id)"""
        submission = db.query(AssignmentSubmission).filter(
            AssignmentSubmission.assignment_id == assignment_id,
            AssignmentSubmission.student_id == student_id
        ).first()

        if not submission:
            submission = AssignmentSubmission(assignment_id=assignment_id, student_id=student_id)
            db.add(submission)

        for key, value in values.items():
            setattr(submission, key, value)
        self._flush(db, "save submission")

        assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
        return self._submission_record(submission, assignment)

    def update_submission(self, db: Session, submission_id: UUID, values: Dict[str, Any]) -> SubmissionRecord:
        submission = db.query(AssignmentSubmission).filter(AssignmentSubmission.id == submission_id).first()
        if not submission:
            raise NotFoundError("Submission not found")

        for key, value in values.items():
            setattr(submission, key, value)
        self._flush(db, "update submission")

        assignment = db.query(Assignment).filter(Assignment.id == submission.assignment_id).first()
        return self._submission_record(submission, assignment)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def create_notification(
        self,
        db: Session,
        user_id: UUID,
        type: str,
        title: str,
        message: str,
        link: Optional[str] = None
    ) -> NotificationRecord:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            link=link,
            read=False
        )
        db.add(notification)
        self._flush(db, "create notification")
        return NotificationRecord.model_validate(notification)

    def list_notifications(
        self,
        db: Session,
        user_id: UUID,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[NotificationRecord]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        rows = query.order_by(Notification.created_at.desc()).limit(limit).all()
        return [NotificationRecord.model_validate(n) for n in rows]

    def mark_notification_read(self, db: Session, notification_id: UUID, user_id: UUID) -> NotificationRecord:
        notification = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).first()
        if not notification:
            raise NotFoundError("Notification not found")
        notification.read = True
        self._flush(db, "mark notification read")
        return NotificationRecord.model_validate(notification)


# Global instance
data_access = DataAccessService()
