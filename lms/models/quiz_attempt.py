"""
QuizAttempt model - a student's run through a quiz
"""
from sqlalchemy import Column, Float, JSON, TIMESTAMP, Uuid, ForeignKey, func
from lms.database import Base
import uuid


class QuizAttempt(Base):
    """
    Quiz attempts table - immutable once completed_at is set
    """
    __tablename__ = "quiz_attempts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    quiz_id = Column(Uuid(as_uuid=True), ForeignKey("quizzes.id"), nullable=False, index=True)
    answers = Column(JSON)
    score = Column(Float, nullable=False, default=0.0)
    max_score = Column(Float, nullable=False, default=0.0)
    started_at = Column(TIMESTAMP, server_default=func.now())
    completed_at = Column(TIMESTAMP)

    def __repr__(self):
        return f"<QuizAttempt(student_id={self.student_id}, quiz_id={self.quiz_id}, score={self.score})>"
