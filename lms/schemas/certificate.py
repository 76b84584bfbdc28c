"""
Pydantic schemas for certificate issuance
"""
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID


class CertificateIssueRequest(BaseModel):
    """Staff may issue for another student; students issue for themselves"""
    student_id: Optional[UUID] = None


class CertificateResponse(BaseModel):
    certificate_url: str
    file_name: str
    message: str = "Certificate generated and saved successfully"


class CertificateSweepResponse(BaseModel):
    student_id: UUID
    orphaned: List[str]
    deleted: bool
