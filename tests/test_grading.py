"""
Tests for assignment submission and grading
"""
import uuid
from datetime import datetime, timedelta

import pytest

from conftest import make_assignment, make_submission, make_subject
from lms.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from lms.models import AssignmentSubmission, Notification
from lms.services.grading_service import format_score, grading_service
from lms.utils.timeutil import utcnow


def _graded_notifications(db):
    return db.query(Notification).filter(Notification.type == "assignment_graded").all()


class TestValidateGrade:
    @pytest.mark.parametrize("grade", [0, 10, 7.5, "8"])
    def test_accepts_range(self, grade):
        assert grading_service.validate_grade(grade, 10) == float(grade)

    @pytest.mark.parametrize("grade", [-1, 10.5, 11, float("nan"), float("inf"), "ten", None])
    def test_rejects_outside_range(self, grade):
        with pytest.raises(ValidationError):
            grading_service.validate_grade(grade, 10)

    def test_format_score(self):
        assert format_score(8.0) == "8"
        assert format_score(7.5) == "7.5"


class TestGradeSubmission:
    @pytest.mark.parametrize("grade", [-1, 11])
    def test_invalid_grade_leaves_row_untouched(self, db, teacher, teacher_id, grade):
        assignment = make_assignment(db, teacher_id, make_subject(db), points=10)
        submission = make_submission(db, assignment)

        with pytest.raises(ValidationError):
            grading_service.grade_submission(db, teacher, submission.id, grade)

        row = db.query(AssignmentSubmission).filter(AssignmentSubmission.id == submission.id).one()
        assert row.status == "submitted"
        assert row.grade is None
        assert _graded_notifications(db) == []

    @pytest.mark.parametrize("grade", [0, 10])
    def test_boundaries_accepted(self, db, teacher, teacher_id, grade):
        assignment = make_assignment(db, teacher_id, make_subject(db), points=10)
        submission = make_submission(db, assignment)

        graded = grading_service.grade_submission(db, teacher, submission.id, grade, "Well done")

        assert graded.status == "graded"
        assert graded.grade == grade
        assert graded.feedback == "Well done"
        assert graded.graded_by == teacher_id
        assert graded.graded_at is not None

    def test_notifies_student(self, db, teacher, teacher_id):
        assignment = make_assignment(db, teacher_id, make_subject(db), points=10)
        submission = make_submission(db, assignment)

        grading_service.grade_submission(db, teacher, submission.id, 8)

        notifications = _graded_notifications(db)
        assert len(notifications) == 1
        assert notifications[0].user_id == submission.student_id
        assert notifications[0].message == (
            'Your assignment "Essay on photosynthesis" has been graded. Score: 8/10'
        )
        assert notifications[0].link == f"/assignments/{assignment.id}"

    def test_regrading_conflicts(self, db, teacher, teacher_id):
        assignment = make_assignment(db, teacher_id, make_subject(db))
        submission = make_submission(db, assignment)
        grading_service.grade_submission(db, teacher, submission.id, 5)

        with pytest.raises(ConflictError):
            grading_service.grade_submission(db, teacher, submission.id, 6)

    def test_draft_cannot_be_graded(self, db, teacher, teacher_id):
        assignment = make_assignment(db, teacher_id, make_subject(db))
        submission = make_submission(db, assignment, status="draft")

        with pytest.raises(ValidationError):
            grading_service.grade_submission(db, teacher, submission.id, 5)

    def test_missing_submission(self, db, teacher):
        with pytest.raises(NotFoundError):
            grading_service.grade_submission(db, teacher, uuid.uuid4(), 5)

    def test_students_cannot_grade(self, db, student, teacher_id):
        assignment = make_assignment(db, teacher_id, make_subject(db))
        submission = make_submission(db, assignment)

        with pytest.raises(PermissionDeniedError):
            grading_service.grade_submission(db, student, submission.id, 5)


class TestBulkGrade:
    def test_one_invalid_item_is_skipped(self, db, teacher, teacher_id):
        subject = make_subject(db)
        ten_points = make_assignment(db, teacher_id, subject, points=10)
        five_points = make_assignment(db, teacher_id, subject, points=5)
        valid = [make_submission(db, ten_points) for _ in range(3)]
        invalid = make_submission(db, five_points)

        result = grading_service.bulk_grade(
            db, teacher, [s.id for s in valid] + [invalid.id], 8, "Good effort"
        )

        assert len(result.graded) == 3
        assert [item["submission_id"] for item in result.skipped] == [invalid.id]
        assert result.failed == []
        assert len(_graded_notifications(db)) == 3

        row = db.query(AssignmentSubmission).filter(AssignmentSubmission.id == invalid.id).one()
        assert row.status == "submitted"

    def test_missing_and_duplicate_ids(self, db, teacher, teacher_id):
        assignment = make_assignment(db, teacher_id, make_subject(db))
        submission = make_submission(db, assignment)
        missing = uuid.uuid4()

        result = grading_service.bulk_grade(db, teacher, [submission.id, submission.id, missing], 4)

        assert [s.id for s in result.graded] == [submission.id]
        assert result.skipped == [{"submission_id": missing, "reason": "Submission not found"}]

    def test_failure_does_not_undo_earlier_items(self, db, teacher, teacher_id, monkeypatch):
        from lms.exceptions import PersistenceError
        from lms.services import grading_service as module

        assignment = make_assignment(db, teacher_id, make_subject(db))
        first, second = make_submission(db, assignment), make_submission(db, assignment)

        original = module.data_access.update_submission

        def flaky_update(session, submission_id, values):
            if submission_id == second.id:
                raise PersistenceError("Failed to update submission")
            return original(session, submission_id, values)

        monkeypatch.setattr(module.data_access, "update_submission", flaky_update)

        result = grading_service.bulk_grade(db, teacher, [first.id, second.id], 7)

        assert [s.id for s in result.graded] == [first.id]
        assert result.failed[0]["submission_id"] == second.id
        row = db.query(AssignmentSubmission).filter(AssignmentSubmission.id == first.id).one()
        assert row.status == "graded"


class TestGradingQueue:
    def test_oldest_first_and_own_only(self, db, teacher, teacher_id):
        subject = make_subject(db)
        mine = make_assignment(db, teacher_id, subject)
        theirs = make_assignment(db, uuid.uuid4(), subject)
        later = make_submission(db, mine, submitted_at=datetime(2025, 11, 3))
        earlier = make_submission(db, mine, submitted_at=datetime(2025, 11, 1))
        other = make_submission(db, theirs, submitted_at=datetime(2025, 11, 2))
        make_submission(db, mine, status="draft")

        queue = grading_service.grading_queue(db, teacher)
        own = grading_service.grading_queue(db, teacher, own_only=True)

        assert [s.id for s in queue] == [earlier.id, other.id, later.id]
        assert [s.id for s in own] == [earlier.id, later.id]


class TestSubmitAssignment:
    def test_on_time(self, db, student, student_id, teacher_id):
        assignment = make_assignment(
            db, teacher_id, make_subject(db), due_date=utcnow() + timedelta(days=1)
        )

        submission = grading_service.submit_assignment(db, student, assignment.id, "Plants make food")

        assert submission.status == "submitted"
        assert submission.student_id == student_id
        assert submission.is_late is False

    def test_late_is_flagged(self, db, student, teacher_id):
        assignment = make_assignment(
            db, teacher_id, make_subject(db), due_date=utcnow() - timedelta(days=1)
        )

        submission = grading_service.submit_assignment(db, student, assignment.id, "Sorry, late")

        assert submission.is_late is True

    def test_late_rejected_when_not_allowed(self, db, student, teacher_id):
        assignment = make_assignment(
            db, teacher_id, make_subject(db),
            due_date=utcnow() - timedelta(days=1),
            allow_late_submission=False
        )

        with pytest.raises(ValidationError):
            grading_service.submit_assignment(db, student, assignment.id, "Too late")

    def test_graded_work_cannot_be_resubmitted(self, db, student, teacher, teacher_id):
        assignment = make_assignment(db, teacher_id, make_subject(db))
        submission = grading_service.submit_assignment(db, student, assignment.id, "First try")
        grading_service.grade_submission(db, teacher, submission.id, 9)

        with pytest.raises(ConflictError):
            grading_service.submit_assignment(db, student, assignment.id, "Second try")

    def test_resubmission_keeps_single_row(self, db, student, teacher_id):
        assignment = make_assignment(db, teacher_id, make_subject(db))

        first = grading_service.submit_assignment(db, student, assignment.id, "Draft one")
        second = grading_service.submit_assignment(db, student, assignment.id, "Draft two")

        assert first.id == second.id
        assert second.submission_text == "Draft two"

    def test_empty_text_rejected(self, db, student, teacher_id):
        assignment = make_assignment(db, teacher_id, make_subject(db))

        with pytest.raises(ValidationError):
            grading_service.submit_assignment(db, student, assignment.id, "   ")
