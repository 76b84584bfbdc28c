"""
Enrollment model - a student's association with a course
"""
from sqlalchemy import (
    Column, Integer, Boolean, Text, TIMESTAMP, Uuid, ForeignKey, UniqueConstraint, func
)
from lms.database import Base
import uuid


class Enrollment(Base):
    """
    Student courses table - carries progress, completion and certificate state

    completed implies completed_at; certificate_url is only written after a
    successful certificate upload.
    """
    __tablename__ = "student_courses"
    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", name="uq_student_courses_student_subject"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id"), nullable=False, index=True)
    progress = Column(Integer, nullable=False, default=0)  # 0..100
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(TIMESTAMP)
    certificate_url = Column(Text)
    enrolled_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return (
            f"<Enrollment(student_id={self.student_id}, subject_id={self.subject_id}, "
            f"progress={self.progress}, completed={self.completed})>"
        )
