"""
Certificate issuance service
Renders a completion certificate, stores it and links it to the enrollment
"""
import io
import logging
import os
import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

import aiofiles
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from lms.config import settings
from lms.context import RequestContext
from lms.exceptions import (
    CertificateUploadError,
    NotFoundError,
    PersistenceError,
    StorageError,
    ValidationError,
)
from lms.services.data_access import data_access
from lms.services.storage_service import StorageService, storage_service
from lms.utils.cache import cache_service
from lms.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

PAGE_SIZE = landscape(A4)
PAGE_W, PAGE_H = PAGE_SIZE

# Flag palette (RGB 0..1)
SKY_BLUE = (0 / 255, 161 / 255, 222 / 255)
YELLOW = (250 / 255, 210 / 255, 1 / 255)
GREEN = (0 / 255, 166 / 255, 81 / 255)

CERTIFICATE_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class CertificateData:
    student_name: str
    course_name: str
    completion_date: datetime
    course_id: UUID
    student_id: UUID


@dataclass(frozen=True)
class CertificateResult:
    certificate_url: str
    storage_path: str
    file_name: str


def format_completion_date(value: datetime) -> str:
    """November 16, 2025"""
    return f"{value:%B} {value.day}, {value.year}"


def certificate_file_name(course_name: str) -> str:
    """Timestamp-qualified file name; a random suffix keeps same-millisecond calls apart"""
    slug = re.sub(r"\s+", "-", course_name.strip())
    slug = re.sub(r"[^\w\-.]", "", slug) or "course"
    return f"certificate-{slug}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.pdf"


def _y(top_mm: float) -> float:
    """Convert a distance from the top edge (mm) to reportlab's bottom-up y"""
    return PAGE_H - top_mm * mm


def render_certificate(data: CertificateData, footer: Optional[str] = None) -> bytes:
    """
    Render the fixed-layout certificate as PDF bytes

    Layout (landscape A4, distances from the top edge):
    double border, tri-colour band at 25mm, title at 55mm, recipient at
    100mm, course at 130mm, date at 145mm, signature at 165mm, footer at
    175mm.
    """
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=PAGE_SIZE)
    pdf.setTitle(f"Certificate - {data.course_name}")
    center = PAGE_W / 2

    # Borders
    pdf.setLineWidth(3)
    pdf.setStrokeColorRGB(*SKY_BLUE)
    pdf.rect(10 * mm, 10 * mm, PAGE_W - 20 * mm, PAGE_H - 20 * mm, stroke=1, fill=0)
    pdf.setLineWidth(1)
    pdf.setStrokeColorRGB(*YELLOW)
    pdf.rect(12 * mm, 12 * mm, PAGE_W - 24 * mm, PAGE_H - 24 * mm, stroke=1, fill=0)

    # Tri-colour band
    band_w = (PAGE_W - 30 * mm) / 3
    band_h = 8 * mm
    for i, color in enumerate((SKY_BLUE, YELLOW, GREEN)):
        pdf.setFillColorRGB(*color)
        pdf.rect(15 * mm + i * band_w, _y(25) - band_h, band_w, band_h, stroke=0, fill=1)

    # Title block
    pdf.setFont("Helvetica-Bold", 40)
    pdf.setFillColorRGB(*SKY_BLUE)
    pdf.drawCentredString(center, _y(55), "CERTIFICATE")

    pdf.setFont("Helvetica-Bold", 20)
    pdf.setFillColorRGB(80 / 255, 80 / 255, 80 / 255)
    pdf.drawCentredString(center, _y(68), "of Course Completion")

    pdf.setLineWidth(0.5)
    pdf.setStrokeColorRGB(*YELLOW)
    pdf.line(center - 50 * mm, _y(72), center + 50 * mm, _y(72))

    # Recipient
    pdf.setFont("Helvetica", 16)
    pdf.setFillColorRGB(60 / 255, 60 / 255, 60 / 255)
    pdf.drawCentredString(center, _y(85), "This certifies that")

    pdf.setFont("Helvetica-Bold", 32)
    pdf.setFillColorRGB(0, 0, 0)
    pdf.drawCentredString(center, _y(100), data.student_name)

    # Course
    pdf.setFont("Helvetica", 16)
    pdf.setFillColorRGB(60 / 255, 60 / 255, 60 / 255)
    pdf.drawCentredString(center, _y(115), "has successfully completed the course")

    pdf.setFont("Helvetica-Bold", 24)
    pdf.setFillColorRGB(*GREEN)
    pdf.drawCentredString(center, _y(130), data.course_name)

    # Date
    pdf.setFont("Helvetica", 14)
    pdf.setFillColorRGB(80 / 255, 80 / 255, 80 / 255)
    pdf.drawCentredString(
        center, _y(145), f"Completion Date: {format_completion_date(data.completion_date)}"
    )

    # Signature line
    pdf.setLineWidth(0.5)
    pdf.setStrokeColorRGB(150 / 255, 150 / 255, 150 / 255)
    pdf.line(center - 30 * mm, _y(165), center + 30 * mm, _y(165))
    pdf.setFont("Helvetica", 10)
    pdf.setFillColorRGB(100 / 255, 100 / 255, 100 / 255)
    pdf.drawCentredString(center, _y(170), "Authorized Signature")

    # Footer
    pdf.setFont("Helvetica", 12)
    pdf.drawCentredString(center, _y(175), footer or settings.CERTIFICATE_FOOTER)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


class CertificateService:
    """
    Service for issuing course completion certificates

    Protocol: render -> upload -> public URL -> write certificate_url scoped
    by (student_id, course_id). Not idempotent: each call stores a new object
    and the last write wins. An upload failure leaves the database alone and
    keeps a local fallback copy; a database failure after upload orphans the
    object until the reconciliation sweep removes it.
    """

    CERTIFICATE_PREFIX = "certificates"

    def __init__(self, storage: Optional[StorageService] = None, fallback_dir: Optional[str] = None):
        self.storage = storage or storage_service
        self.fallback_dir = fallback_dir or settings.CERTIFICATE_FALLBACK_DIR

    def storage_prefix(self, student_id: UUID) -> str:
        return f"{self.CERTIFICATE_PREFIX}/{student_id}/"

    async def generate(self, db: Session, data: CertificateData) -> CertificateResult:
        """
        Render, upload and link a certificate

        Raises:
            CertificateUploadError: upload failed, fallback copy written
            PersistenceError / NotFoundError: linking failed after upload
        """
        pdf_bytes = render_certificate(data)
        file_name = certificate_file_name(data.course_name)
        path = f"{self.storage_prefix(data.student_id)}{file_name}"

        try:
            self.storage.upload(path, pdf_bytes, CERTIFICATE_CONTENT_TYPE)
        except StorageError as e:
            try:
                await self._write_fallback(data.student_id, file_name, pdf_bytes)
            except OSError as write_error:
                logger.error(f"Certificate fallback copy could not be written: {write_error}")
                raise CertificateUploadError("Failed to save certificate") from e

            raise CertificateUploadError(
                "Failed to save certificate; a local copy is available for download",
                fallback_file=file_name
            ) from e

        url = self.storage.get_public_url(path)

        try:
            data_access.update_enrollment(
                db, data.student_id, data.course_id, {"certificate_url": url}
            )
            data_access.commit(db, "save certificate link")
        except (PersistenceError, NotFoundError):
            logger.error(
                f"Certificate stored but not linked, orphaned object: {path} "
                f"(student={data.student_id}, course={data.course_id})"
            )
            raise

        cache_service.clear_analytics_cache()
        logger.info(f"Certificate issued: student={data.student_id}, course={data.course_id}, path={path}")

        return CertificateResult(certificate_url=url, storage_path=path, file_name=file_name)

    async def issue(
        self,
        db: Session,
        context: RequestContext,
        student_id: UUID,
        course_id: UUID
    ) -> CertificateResult:
        """
        Issue a certificate for an enrollment on behalf of the caller

        Students need a completed enrollment of their own; teachers and
        admins may issue for any existing enrollment.
        """
        context.require_self_or_staff(student_id)

        enrollment = data_access.get_enrollment(db, student_id, course_id)
        if not enrollment:
            raise NotFoundError("Enrollment not found")

        if settings.CERTIFICATE_REQUIRE_COMPLETION and not enrollment.completed and not context.is_staff:
            raise ValidationError("Certificates are only available for completed courses")

        subject = data_access.get_subject(db, course_id)
        profile = data_access.get_profile(db, student_id)

        data = CertificateData(
            student_name=(profile.full_name if profile and profile.full_name else "Student"),
            course_name=" ".join(p for p in (subject.name, subject.year_level) if p),
            completion_date=enrollment.completed_at or utcnow(),
            course_id=course_id,
            student_id=student_id
        )

        return await self.generate(db, data)

    def download(self, db: Session, context: RequestContext, student_id: UUID, course_id: UUID) -> bytes:
        """Fetch the certificate the enrollment currently points at"""
        context.require_self_or_staff(student_id)

        enrollment = data_access.get_enrollment(db, student_id, course_id)
        if not enrollment or not enrollment.certificate_url:
            raise NotFoundError("No certificate issued for this course")

        path = self.storage.path_from_url(enrollment.certificate_url)
        if not path:
            raise NotFoundError("Certificate is not held in this storage")

        return self.storage.download(path)

    def _fallback_path(self, student_id: UUID, file_name: str) -> str:
        if os.path.basename(file_name) != file_name or not file_name.endswith(".pdf"):
            raise ValidationError("Invalid certificate file name")
        return os.path.join(self.fallback_dir, str(student_id), file_name)

    async def _write_fallback(self, student_id: UUID, file_name: str, pdf_bytes: bytes) -> str:
        path = self._fallback_path(student_id, file_name)
        os.makedirs(os.path.dirname(path), exist_ok=True)

        async with aiofiles.open(path, "wb") as f:
            await f.write(pdf_bytes)

        logger.warning(f"Certificate upload failed, fallback copy written to {path}")
        return path

    async def read_fallback(self, context: RequestContext, student_id: UUID, file_name: str) -> bytes:
        """Local copy kept after a failed upload"""
        context.require_self_or_staff(student_id)
        path = self._fallback_path(student_id, file_name)

        if not os.path.exists(path):
            raise NotFoundError("Certificate copy not found")

        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    def find_orphaned(self, db: Session, student_id: UUID) -> List[str]:
        """
        Stored certificate objects no enrollment of the student points at

        Returns nothing when a linked URL cannot be resolved to an object key,
        since any stored object could then be the linked one.
        """
        referenced = set()
        for enrollment in data_access.list_enrollments(db, student_id=student_id):
            if not enrollment.certificate_url:
                continue
            path = self.storage.path_from_url(enrollment.certificate_url)
            if not path:
                logger.warning(
                    f"Skipping certificate sweep for student={student_id}: "
                    f"cannot resolve {enrollment.certificate_url}"
                )
                return []
            referenced.add(path)

        stored = self.storage.list(self.storage_prefix(student_id))
        return sorted(key for key in stored if key not in referenced)

    def sweep_orphaned(self, db: Session, context: RequestContext, student_id: UUID, delete: bool = False) -> List[str]:
        """Report (and optionally delete) orphaned certificate objects"""
        context.require_staff()

        orphaned = self.find_orphaned(db, student_id)
        if delete:
            for path in orphaned:
                self.storage.delete(path)

        logger.info(
            f"Certificate sweep: student={student_id}, orphaned={len(orphaned)}, deleted={delete}"
        )
        return orphaned


# Global instance
certificate_service = CertificateService()
