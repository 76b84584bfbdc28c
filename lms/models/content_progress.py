"""
ContentProgress model - tracks completion of individual content items
"""
from sqlalchemy import (
    Column, Integer, Boolean, String, Text, TIMESTAMP, Uuid, ForeignKey, UniqueConstraint, func
)
from lms.database import Base
import uuid


class ContentProgress(Base):
    """
    Content progress table - one row per (student, content) pair
    """
    __tablename__ = "content_progress"
    __table_args__ = (
        UniqueConstraint("student_id", "content_id", name="uq_content_progress_student_content"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    content_id = Column(Uuid(as_uuid=True), ForeignKey("content.id"), nullable=False, index=True)
    progress_type = Column(String(20), nullable=False)  # video, article, exercise
    completion_percentage = Column(Integer, nullable=False, default=0)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    last_position = Column(Text)  # video timestamp or scroll position
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return (
            f"<ContentProgress(student_id={self.student_id}, content_id={self.content_id}, "
            f"completed={self.completed})>"
        )
