"""
Shared fixtures: in-memory SQLite database, API client and a fake object store
"""
import os
import tempfile
from datetime import datetime
from typing import Dict, List

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:1/0")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "100000")
os.environ.setdefault("RATE_LIMIT_PER_HOUR", "1000000")
os.environ.setdefault("CERTIFICATE_FALLBACK_DIR", os.path.join(tempfile.gettempdir(), "lms-test-certificates"))

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lms.context import RequestContext
from lms.database import Base, get_db
from lms.exceptions import NotFoundError, StorageError
from lms.models import (
    Assignment,
    AssignmentSubmission,
    ContentItem,
    Enrollment,
    Profile,
    Quiz,
    Subject,
)
from lms.services.certificate_service import certificate_service
from lms.services.storage_service import StorageService
from lms.utils.rate_limiter import rate_limiter

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class FakeStorage(StorageService):
    """Dict-backed object store; set fail_uploads to simulate an outage"""

    def __init__(self):
        super().__init__(bucket="content-files", public_base_url="http://storage.test")
        self.objects: Dict[str, bytes] = {}
        self.fail_uploads = False

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail_uploads:
            raise StorageError(f"Failed to upload {path}")
        self.objects[path] = data

    def download(self, path: str) -> bytes:
        if path not in self.objects:
            raise NotFoundError(f"File not found: {path}")
        return self.objects[path]

    def list(self, prefix: str) -> List[str]:
        return sorted(key for key in self.objects if key.startswith(prefix))

    def delete(self, path: str) -> None:
        self.objects.pop(path, None)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage(monkeypatch, tmp_path):
    fake = FakeStorage()
    monkeypatch.setattr(certificate_service, "storage", fake)
    monkeypatch.setattr(certificate_service, "fallback_dir", str(tmp_path / "fallback"))
    return fake


@pytest.fixture
def client(db, storage):
    from lms.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def student_id():
    return uuid.uuid4()


@pytest.fixture
def teacher_id():
    return uuid.uuid4()


@pytest.fixture
def student(student_id):
    return RequestContext(user_id=student_id, role="student")


@pytest.fixture
def teacher(teacher_id):
    return RequestContext(user_id=teacher_id, role="teacher")


def headers_for(context: RequestContext) -> Dict[str, str]:
    return {"X-User-Id": str(context.user_id), "X-User-Role": context.role}


def add(db, row):
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def make_subject(db, name="Mathematics", year_level="S3", content_items=0):
    subject = add(db, Subject(name=name, year_level=year_level, level="O"))
    for i in range(content_items):
        make_content(db, subject, title=f"{name} lesson {i + 1}")
    return subject


def make_content(db, subject, title="Lesson", content_type="video"):
    return add(db, ContentItem(subject_id=subject.id, title=title, content_type=content_type))


def make_profile(db, user_id, full_name="Aline Uwase", role="student"):
    return add(db, Profile(id=user_id, full_name=full_name, role=role))


def make_enrollment(db, student_id, subject, progress=0, completed=False, completed_at=None):
    return add(db, Enrollment(
        student_id=student_id,
        subject_id=subject.id,
        progress=progress,
        completed=completed,
        completed_at=completed_at if completed_at or not completed else datetime(2025, 11, 16, 10, 0),
    ))


def make_quiz(db, subject, title="Weekly quiz"):
    return add(db, Quiz(subject_id=subject.id, title=title, quiz_type="practice"))


def make_assignment(db, teacher_id, subject, points=10.0, due_date=None, allow_late_submission=True):
    return add(db, Assignment(
        teacher_id=teacher_id,
        subject_id=subject.id,
        title="Essay on photosynthesis",
        points=points,
        due_date=due_date,
        allow_late_submission=allow_late_submission,
    ))


def make_submission(db, assignment, student_id=None, status="submitted", submitted_at=None):
    return add(db, AssignmentSubmission(
        assignment_id=assignment.id,
        student_id=student_id or uuid.uuid4(),
        submission_text="My answer",
        status=status,
        submitted_at=submitted_at or datetime(2025, 11, 1, 9, 0),
    ))
