"""
Notification model - user-visible messages produced by workflow events
"""
from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, Uuid, func
from lms.database import Base
import uuid


class Notification(Base):
    """
    Notifications table - append-only apart from the read flag
    """
    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    type = Column(String(40), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(Text)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Notification(user_id={self.user_id}, type={self.type}, read={self.read})>"
