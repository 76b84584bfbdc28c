"""
Pydantic schemas for content progress and course progress
"""
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID

from lms.schemas.records import ContentProgressRecord, EnrollmentRecord


class ContentProgressUpdate(BaseModel):
    """Schema for updating progress on one content item"""
    completion_percentage: int = Field(..., ge=0, le=100, description="Completion percentage")
    completed: bool = Field(False, description="Explicit completion flag")
    time_spent_seconds: int = Field(0, ge=0, description="Time spent in seconds")
    last_position: Optional[str] = Field(None, max_length=255, description="Video timestamp or scroll position")


class CourseProgress(BaseModel):
    """Aggregated progress of a student in a course"""
    student_id: UUID
    course_id: UUID
    total_items: int
    completed_items: int
    percentage: int
    enrolled: bool
    completed: bool = False
    total_quizzes: int = 0
    average_quiz_score: float = 0.0

    class Config:
        from_attributes = True


class ContentProgressResponse(BaseModel):
    """Response after a content progress update"""
    message: str
    record: ContentProgressRecord
    enrollment: Optional[EnrollmentRecord] = None
    course_progress: Optional[int] = None
    newly_completed: bool = False
