"""
Certificate issuance and download API endpoints
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
import logging

from lms.api.deps import get_context
from lms.context import RequestContext
from lms.database import get_db
from lms.exceptions import CertificateUploadError
from lms.schemas.certificate import (
    CertificateIssueRequest, CertificateResponse, CertificateSweepResponse
)
from lms.services.certificate_service import certificate_service

router = APIRouter(prefix="/api/certificates", tags=["certificates"])
logger = logging.getLogger(__name__)


def _pdf_response(pdf_bytes: bytes, file_name: str) -> Response:
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'}
    )


@router.post("/{course_id}", response_model=CertificateResponse, status_code=201)
async def issue_certificate(
    course_id: UUID,
    request: Optional[CertificateIssueRequest] = None,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Generate a completion certificate and link it to the enrollment

    - Every call stores a new PDF; the enrollment points at the latest one
    - 502 with a fallback download link when the upload fails
    """
    student_id = (request.student_id if request else None) or context.user_id

    try:
        result = await certificate_service.issue(db, context, student_id, course_id)
    except CertificateUploadError as e:
        logger.warning(f"Certificate upload failed for student={student_id}, course={course_id}")
        return JSONResponse(
            status_code=e.status_code,
            content={
                "error": e.error_code,
                "message": e.message,
                "status_code": e.status_code,
                "fallback_url": (
                    f"/api/certificates/fallback/{student_id}/{e.fallback_file}" if e.fallback_file else None
                )
            }
        )

    return CertificateResponse(certificate_url=result.certificate_url, file_name=result.file_name)


@router.get("/{course_id}/download")
async def download_certificate(
    course_id: UUID,
    student_id: Optional[UUID] = None,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Download the certificate currently linked to the enrollment"""
    student_id = student_id or context.user_id
    pdf_bytes = certificate_service.download(db, context, student_id, course_id)
    return _pdf_response(pdf_bytes, f"certificate-{course_id}.pdf")


@router.get("/fallback/{student_id}/{file_name}")
async def download_fallback(
    student_id: UUID,
    file_name: str,
    context: RequestContext = Depends(get_context)
):
    """Download the local copy kept after a failed upload"""
    pdf_bytes = await certificate_service.read_fallback(context, student_id, file_name)
    return _pdf_response(pdf_bytes, file_name)


@router.post("/sweep/{student_id}", response_model=CertificateSweepResponse)
async def sweep_certificates(
    student_id: UUID,
    delete: bool = False,
    context: RequestContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Find certificate objects no enrollment points at

    Staff only. Pass delete=true to remove them from storage.
    """
    orphaned = certificate_service.sweep_orphaned(db, context, student_id, delete=delete)
    return CertificateSweepResponse(student_id=student_id, orphaned=orphaned, deleted=delete)
