"""
Profile model - display data and role for an authenticated user
"""
from sqlalchemy import Column, String, TIMESTAMP, Uuid, func
from lms.database import Base
import uuid


class Profile(Base):
    """
    Profiles table - one row per user of the auth service
    """
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255))
    role = Column(String(20), nullable=False, default="student", index=True)
    class_year = Column(String(10))
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Profile(id={self.id}, role={self.role})>"
