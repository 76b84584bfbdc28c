"""
Pydantic schemas for assignment submission and grading
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID

from lms.schemas.records import SubmissionRecord


class AssignmentSubmit(BaseModel):
    submission_text: str = Field(..., min_length=1)


class GradeRequest(BaseModel):
    """Grade for one submission; the range is checked against the assignment"""
    grade: float
    feedback: Optional[str] = None


class BulkGradeRequest(BaseModel):
    submission_ids: List[UUID] = Field(..., min_length=1)
    grade: float
    feedback: Optional[str] = None


class BulkGradeItem(BaseModel):
    submission_id: UUID
    reason: str


class BulkGradeResponse(BaseModel):
    """Outcome of a bulk grading batch"""
    message: str
    graded: List[SubmissionRecord]
    skipped: List[BulkGradeItem]
    failed: List[BulkGradeItem]


class GradingQueueResponse(BaseModel):
    submissions: List[SubmissionRecord]
    total: int
