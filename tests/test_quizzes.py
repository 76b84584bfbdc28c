"""
Tests for quiz attempts
"""
import uuid

import pytest

from conftest import make_quiz, make_subject
from lms.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from lms.services.quiz_service import quiz_service


class TestQuizAttempts:
    def test_start_and_complete(self, db, student, student_id):
        quiz = make_quiz(db, make_subject(db))

        attempt = quiz_service.start_attempt(db, student, quiz.id)
        assert attempt.student_id == student_id
        assert attempt.completed_at is None

        completed = quiz_service.complete_attempt(db, student, attempt.id, 7, 10, answers={"q1": "b"})

        assert completed.completed_at is not None
        assert completed.score == 7
        assert completed.percentage == pytest.approx(70)
        assert completed.answers == {"q1": "b"}

    def test_unknown_quiz(self, db, student):
        with pytest.raises(NotFoundError):
            quiz_service.start_attempt(db, student, uuid.uuid4())

    def test_completed_attempt_is_immutable(self, db, student):
        quiz = make_quiz(db, make_subject(db))
        attempt = quiz_service.start_attempt(db, student, quiz.id)
        quiz_service.complete_attempt(db, student, attempt.id, 7, 10)

        with pytest.raises(ConflictError):
            quiz_service.complete_attempt(db, student, attempt.id, 10, 10)

        from lms.services.data_access import data_access
        assert data_access.get_quiz_attempt(db, attempt.id).score == 7

    @pytest.mark.parametrize("score,max_score", [(-1, 10), (11, 10), (0, 0)])
    def test_score_range(self, db, student, score, max_score):
        quiz = make_quiz(db, make_subject(db))
        attempt = quiz_service.start_attempt(db, student, quiz.id)

        with pytest.raises(ValidationError):
            quiz_service.complete_attempt(db, student, attempt.id, score, max_score)

    def test_other_students_cannot_complete(self, db, student):
        from lms.context import RequestContext

        quiz = make_quiz(db, make_subject(db))
        attempt = quiz_service.start_attempt(db, student, quiz.id)
        intruder = RequestContext(user_id=uuid.uuid4())

        with pytest.raises(PermissionDeniedError):
            quiz_service.complete_attempt(db, intruder, attempt.id, 5, 10)
