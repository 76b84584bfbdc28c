"""
Pydantic schemas for quiz attempts
"""
from pydantic import BaseModel, Field
from typing import Any, Optional


class QuizAttemptComplete(BaseModel):
    """Schema for completing a quiz attempt"""
    score: float = Field(..., ge=0, description="Points scored")
    max_score: float = Field(..., gt=0, description="Maximum points")
    answers: Optional[Any] = None
