"""
Pydantic schemas for notifications
"""
from pydantic import BaseModel
from typing import List

from lms.schemas.records import NotificationRecord


class NotificationListResponse(BaseModel):
    notifications: List[NotificationRecord]
    unread: int
