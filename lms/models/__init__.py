"""
Database models package
"""
from lms.models.subject import Subject
from lms.models.profile import Profile
from lms.models.enrollment import Enrollment
from lms.models.content import ContentItem
from lms.models.content_progress import ContentProgress
from lms.models.quiz import Quiz
from lms.models.quiz_attempt import QuizAttempt
from lms.models.assignment import Assignment, AssignmentSubmission
from lms.models.notification import Notification

__all__ = [
    "Subject",
    "Profile",
    "Enrollment",
    "ContentItem",
    "ContentProgress",
    "Quiz",
    "QuizAttempt",
    "Assignment",
    "AssignmentSubmission",
    "Notification",
]
