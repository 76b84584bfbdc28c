"""
Pydantic schemas for analytics endpoints
"""
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID
from datetime import datetime


class CourseSummary(BaseModel):
    """Progress of a student in one course"""
    subject_id: UUID
    subject_name: str
    progress: int
    completed: bool
    completed_at: Optional[datetime] = None
    certificate_url: Optional[str] = None


class StudentSummary(BaseModel):
    """Quiz statistics and course progress of a student"""
    student_id: UUID
    total_quizzes: int
    average_score: float
    highest_score: float
    completed_courses: int
    courses: List[CourseSummary]


class CourseCompletion(BaseModel):
    subject_id: UUID
    subject: str
    enrolled: int
    completed: int
    completion_rate: int


class PerformanceTrend(BaseModel):
    date: str
    average_score: int
    attempts: int


class Overview(BaseModel):
    total_students: int
    total_courses: int
    average_completion: int
    average_score: int
