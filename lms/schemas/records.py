"""
Typed domain records parsed from database rows

The data access layer returns these instead of ORM rows so every value
crossing the boundary has been validated.
"""
from pydantic import BaseModel, Field, model_validator
from typing import Any, Literal, Optional
from uuid import UUID
from datetime import datetime


Role = Literal["student", "teacher", "admin"]
SubmissionStatus = Literal["draft", "submitted", "graded"]


class SubjectRecord(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    level: Optional[str] = None
    year_level: Optional[str] = None

    class Config:
        from_attributes = True


class ProfileRecord(BaseModel):
    id: UUID
    full_name: Optional[str] = None
    role: Role = "student"

    class Config:
        from_attributes = True


class EnrollmentRecord(BaseModel):
    """Enrollment row; completed implies completed_at"""
    id: UUID
    student_id: UUID
    subject_id: UUID
    progress: int = Field(0, ge=0, le=100)
    completed: bool = False
    completed_at: Optional[datetime] = None
    certificate_url: Optional[str] = None
    enrolled_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def check_completion_timestamp(self):
        if self.completed and self.completed_at is None:
            raise ValueError("completed enrollment must carry completed_at")
        return self


class ContentRecord(BaseModel):
    id: UUID
    subject_id: UUID
    title: str
    content_type: str
    file_path: Optional[str] = None

    class Config:
        from_attributes = True


class ContentProgressRecord(BaseModel):
    id: UUID
    student_id: UUID
    content_id: UUID
    progress_type: str
    completion_percentage: int = Field(0, ge=0, le=100)
    time_spent_seconds: int = Field(0, ge=0)
    completed: bool = False
    last_position: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuizRecord(BaseModel):
    id: UUID
    subject_id: UUID
    title: str
    quiz_type: Optional[str] = None

    class Config:
        from_attributes = True


class QuizAttemptRecord(BaseModel):
    id: UUID
    student_id: UUID
    quiz_id: UUID
    answers: Optional[Any] = None
    score: float = Field(0.0, ge=0)
    max_score: float = Field(0.0, ge=0)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def percentage(self) -> float:
        if self.max_score <= 0:
            return 0.0
        return self.score / self.max_score * 100


class AssignmentRecord(BaseModel):
    id: UUID
    teacher_id: UUID
    subject_id: UUID
    title: str
    points: float = Field(100.0, ge=0)
    due_date: Optional[datetime] = None
    allow_late_submission: bool = True

    class Config:
        from_attributes = True


class SubmissionRecord(BaseModel):
    """Submission joined with the assignment it answers"""
    id: UUID
    assignment_id: UUID
    student_id: UUID
    submission_text: Optional[str] = None
    submitted_at: Optional[datetime] = None
    status: SubmissionStatus = "draft"
    grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[UUID] = None
    is_late: bool = False
    assignment: AssignmentRecord

    class Config:
        from_attributes = True


class NotificationRecord(BaseModel):
    id: UUID
    user_id: UUID
    type: str
    title: str
    message: str
    link: Optional[str] = None
    read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
