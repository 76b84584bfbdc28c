"""
Pydantic schemas for course enrollment requests and responses
"""
from pydantic import BaseModel
from typing import List

from lms.schemas.records import ContentRecord, EnrollmentRecord, SubjectRecord


class CourseListResponse(BaseModel):
    courses: List[SubjectRecord]


class CourseDetailResponse(BaseModel):
    course: SubjectRecord
    content: List[ContentRecord]


class EnrollmentListResponse(BaseModel):
    enrollments: List[EnrollmentRecord]


class DropResponse(BaseModel):
    """Result of dropping a course"""
    message: str
    dropped: bool
