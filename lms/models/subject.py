"""
Subject model - a course students enroll in
"""
from sqlalchemy import Column, String, Text, TIMESTAMP, Uuid, func
from lms.database import Base
import uuid


class Subject(Base):
    """
    Subjects table - courses offered per year level
    """
    __tablename__ = "subjects"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    level = Column(String(10))  # "O" or "A"
    year_level = Column(String(10), index=True)  # S1..S6
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Subject(id={self.id}, name={self.name}, year_level={self.year_level})>"
