"""
Tests for certificate rendering, issuance and reconciliation
"""
import asyncio
import os
import re
import uuid
from datetime import datetime

import pytest

from conftest import make_enrollment, make_profile, make_subject
from lms.exceptions import (
    CertificateUploadError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from lms.services.certificate_service import (
    CertificateData,
    certificate_file_name,
    certificate_service,
    format_completion_date,
    render_certificate,
)
from lms.services.data_access import data_access


def _issue(db, context, student_id, course_id):
    return asyncio.run(certificate_service.issue(db, context, student_id, course_id))


@pytest.fixture
def completed_course(db, student_id):
    make_profile(db, student_id, full_name="Aline Uwase")
    course = make_subject(db, "Biology", year_level="S3")
    make_enrollment(db, student_id, course, progress=100, completed=True)
    return course


class TestRendering:
    def test_pdf_bytes(self, student_id):
        data = CertificateData(
            student_name="Aline Uwase",
            course_name="Biology S3",
            completion_date=datetime(2025, 11, 16),
            course_id=uuid.uuid4(),
            student_id=student_id,
        )

        pdf = render_certificate(data, footer="Test footer")

        assert pdf.startswith(b"%PDF")

    def test_completion_date_format(self):
        assert format_completion_date(datetime(2025, 11, 16)) == "November 16, 2025"
        assert format_completion_date(datetime(2026, 3, 5)) == "March 5, 2026"

    def test_file_name(self):
        name = certificate_file_name("Biology  S3")

        assert re.fullmatch(r"certificate-Biology-S3-\d{13}-[0-9a-f]{8}\.pdf", name)
        assert certificate_file_name("Biology S3") != certificate_file_name("Biology S3")


class TestIssue:
    def test_uploads_and_links(self, db, storage, student, student_id, completed_course):
        result = _issue(db, student, student_id, completed_course.id)

        assert result.storage_path.startswith(f"certificates/{student_id}/certificate-Biology-S3-")
        assert storage.objects[result.storage_path].startswith(b"%PDF")
        assert result.certificate_url == f"http://storage.test/content-files/{result.storage_path}"

        enrollment = data_access.get_enrollment(db, student_id, completed_course.id)
        assert enrollment.certificate_url == result.certificate_url

    def test_regeneration_is_last_write_wins(self, db, storage, student, student_id, completed_course):
        first = _issue(db, student, student_id, completed_course.id)
        second = _issue(db, student, student_id, completed_course.id)

        assert first.storage_path != second.storage_path
        assert len(storage.objects) == 2

        enrollment = data_access.get_enrollment(db, student_id, completed_course.id)
        assert enrollment.certificate_url == second.certificate_url

    def test_upload_failure_keeps_database_and_writes_fallback(
        self, db, storage, student, student_id, completed_course
    ):
        storage.fail_uploads = True

        with pytest.raises(CertificateUploadError) as exc_info:
            _issue(db, student, student_id, completed_course.id)

        enrollment = data_access.get_enrollment(db, student_id, completed_course.id)
        assert enrollment.certificate_url is None
        assert storage.objects == {}

        file_name = exc_info.value.fallback_file
        path = os.path.join(certificate_service.fallback_dir, str(student_id), file_name)
        assert os.path.exists(path)

        copy = asyncio.run(certificate_service.read_fallback(student, student_id, file_name))
        assert copy.startswith(b"%PDF")

    def test_link_failure_leaves_orphan(self, db, storage, student, student_id, completed_course, monkeypatch):
        from lms.services import certificate_service as module

        def broken_update(*args, **kwargs):
            raise PersistenceError("Failed to update enrollment")

        monkeypatch.setattr(module.data_access, "update_enrollment", broken_update)

        with pytest.raises(PersistenceError):
            _issue(db, student, student_id, completed_course.id)

        assert len(storage.objects) == 1

    def test_incomplete_course_rejected_for_students(self, db, storage, student, student_id):
        course = make_subject(db)
        make_enrollment(db, student_id, course, progress=50)

        with pytest.raises(ValidationError):
            _issue(db, student, student_id, course.id)
        assert storage.objects == {}

    def test_staff_may_override(self, db, storage, teacher, student_id):
        course = make_subject(db)
        make_enrollment(db, student_id, course, progress=50)

        result = _issue(db, teacher, student_id, course.id)

        assert result.storage_path in storage.objects

    def test_not_enrolled(self, db, storage, student, student_id):
        course = make_subject(db)

        with pytest.raises(NotFoundError):
            _issue(db, student, student_id, course.id)

    def test_other_students_rejected(self, db, storage, student, completed_course):
        with pytest.raises(PermissionDeniedError):
            _issue(db, student, uuid.uuid4(), completed_course.id)


class TestDownload:
    def test_returns_linked_certificate(self, db, storage, student, student_id, completed_course):
        result = _issue(db, student, student_id, completed_course.id)

        pdf = certificate_service.download(db, student, student_id, completed_course.id)

        assert pdf == storage.objects[result.storage_path]

    def test_nothing_issued(self, db, storage, student, student_id, completed_course):
        with pytest.raises(NotFoundError):
            certificate_service.download(db, student, student_id, completed_course.id)

    def test_fallback_name_must_be_plain(self, student, student_id):
        with pytest.raises(ValidationError):
            asyncio.run(certificate_service.read_fallback(student, student_id, "../secret.pdf"))


class TestSweep:
    def test_reports_and_deletes_orphans(self, db, storage, student, teacher, student_id, completed_course):
        first = _issue(db, student, student_id, completed_course.id)
        second = _issue(db, student, student_id, completed_course.id)

        orphaned = certificate_service.sweep_orphaned(db, teacher, student_id)
        assert orphaned == [first.storage_path]
        assert first.storage_path in storage.objects

        certificate_service.sweep_orphaned(db, teacher, student_id, delete=True)
        assert list(storage.objects) == [second.storage_path]

    def test_students_cannot_sweep(self, db, storage, student, student_id):
        with pytest.raises(PermissionDeniedError):
            certificate_service.sweep_orphaned(db, student, student_id)


class TestSweepAfterBaseUrlChange:
    def test_linked_certificate_survives_new_public_url(
        self, db, storage, student, teacher, student_id, completed_course
    ):
        first = _issue(db, student, student_id, completed_course.id)
        second = _issue(db, student, student_id, completed_course.id)
        storage.public_base_url = "https://cdn.example"

        orphaned = certificate_service.sweep_orphaned(db, teacher, student_id, delete=True)

        assert orphaned == [first.storage_path]
        assert list(storage.objects) == [second.storage_path]
        pdf = certificate_service.download(db, student, student_id, completed_course.id)
        assert pdf.startswith(b"%PDF")

    def test_unresolvable_link_skips_sweep(self, db, storage, student, teacher, student_id, completed_course):
        result = _issue(db, student, student_id, completed_course.id)
        data_access.update_enrollment(
            db, student_id, completed_course.id, {"certificate_url": "https://elsewhere.example/cert.pdf"}
        )
        db.commit()

        orphaned = certificate_service.sweep_orphaned(db, teacher, student_id, delete=True)

        assert orphaned == []
        assert result.storage_path in storage.objects

    def test_path_from_url(self, storage):
        assert storage.path_from_url(
            "https://cdn.example/content-files/certificates/abc/certificate-x.pdf"
        ) == "certificates/abc/certificate-x.pdf"
        assert storage.path_from_url("https://cdn.example/other-bucket/x.pdf") is None
        assert storage.path_from_url("") is None


class TestFallbackWriteFailure:
    def test_unwritable_fallback_still_reports_upload_failure(
        self, db, storage, student, student_id, completed_course, monkeypatch
    ):
        storage.fail_uploads = True

        async def unwritable(*args, **kwargs):
            raise PermissionError("read-only file system")

        monkeypatch.setattr(certificate_service, "_write_fallback", unwritable)

        with pytest.raises(CertificateUploadError) as exc_info:
            _issue(db, student, student_id, completed_course.id)

        assert exc_info.value.fallback_file is None
        assert data_access.get_enrollment(db, student_id, completed_course.id).certificate_url is None


class TestCertificateCacheInvalidation:
    def test_linking_clears_analytics_cache(self, db, storage, student, student_id, completed_course, monkeypatch):
        from lms.utils.cache import cache_service

        calls = []
        monkeypatch.setattr(cache_service, "clear_analytics_cache", lambda: calls.append(1) or True)

        _issue(db, student, student_id, completed_course.id)

        assert len(calls) == 1
