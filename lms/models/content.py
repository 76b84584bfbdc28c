"""
Content model - instructional material attached to a course
"""
from sqlalchemy import Column, String, Text, TIMESTAMP, Uuid, ForeignKey, func
from lms.database import Base
import uuid


class ContentItem(Base):
    """
    Content table - videos, articles, exercises and books of a subject
    """
    __tablename__ = "content"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content_type = Column(String(20), nullable=False)  # video, article, exercise, book, past_exam
    file_path = Column(Text)
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<ContentItem(id={self.id}, title={self.title}, type={self.content_type})>"
