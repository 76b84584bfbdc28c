"""
Assignment and AssignmentSubmission models
"""
from sqlalchemy import (
    Column, String, Text, Float, Boolean, TIMESTAMP, Uuid, ForeignKey, UniqueConstraint, func
)
from lms.database import Base
import uuid


class Assignment(Base):
    """
    Assignments table - work set by a teacher with a point ceiling
    """
    __tablename__ = "assignments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id"), nullable=False)
    title = Column(String(255), nullable=False)
    instructions = Column(Text)
    points = Column(Float, nullable=False, default=100.0)
    due_date = Column(TIMESTAMP)
    allow_late_submission = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Assignment(id={self.id}, title={self.title}, points={self.points})>"


class AssignmentSubmission(Base):
    """
    Assignment submissions table - status moves draft -> submitted -> graded
    """
    __tablename__ = "assignment_submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    assignment_id = Column(Uuid(as_uuid=True), ForeignKey("assignments.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    submission_text = Column(Text)
    submitted_at = Column(TIMESTAMP)
    status = Column(String(20), nullable=False, default="draft")
    grade = Column(Float)
    feedback = Column(Text)
    graded_at = Column(TIMESTAMP)
    graded_by = Column(Uuid(as_uuid=True))
    is_late = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<AssignmentSubmission(id={self.id}, status={self.status}, grade={self.grade})>"
