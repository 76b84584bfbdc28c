"""
Notification API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from lms.api.deps import get_context
from lms.context import RequestContext
from lms.database import get_db
from lms.schemas.notification import NotificationListResponse
from lms.schemas.records import NotificationRecord
from lms.services.data_access import data_access

router = APIRouter(prefix="/api/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Notifications of the caller, newest first"""
    notifications = data_access.list_notifications(
        db, context.user_id, unread_only=unread_only, limit=limit
    )
    unread = sum(1 for n in notifications if not n.read)
    return NotificationListResponse(notifications=notifications, unread=unread)


@router.post("/{notification_id}/read", response_model=NotificationRecord)
async def mark_read(
    notification_id: UUID,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    notification = data_access.mark_notification_read(db, notification_id, context.user_id)
    data_access.commit(db, "mark notification read")
    return notification
