"""
Quiz model - quizzes published for a subject
"""
from sqlalchemy import Column, String, Integer, TIMESTAMP, Uuid, ForeignKey, func
from lms.database import Base
import uuid


class Quiz(Base):
    """
    Quizzes table
    """
    __tablename__ = "quizzes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id"), nullable=False, index=True)
    teacher_id = Column(Uuid(as_uuid=True))
    title = Column(String(255), nullable=False)
    quiz_type = Column(String(20), default="practice")
    time_limit_minutes = Column(Integer)
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Quiz(id={self.id}, subject_id={self.subject_id}, title={self.title})>"
