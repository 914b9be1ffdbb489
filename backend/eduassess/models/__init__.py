"""SQLAlchemy models for EduAssess."""

from .enums import (
    UserRole, QuestionType, AssessmentStatus, SubmissionStatus, ViolationType,
    PublicLinkPermission, ChatCommandStatus, AiProvider,
)
from .user import User, PasswordResetToken
from .course import Course, Lecture, Enrollment
from .assessment import Question, Quiz, QuizQuestion, Assignment
from .submission import QuizSubmission, AssignmentSubmission, ProctoringViolation, PublicQuizSubmission
from .chat import ChatCommand

__all__ = [
    "UserRole",
    "QuestionType",
    "AssessmentStatus",
    "SubmissionStatus",
    "ViolationType",
    "PublicLinkPermission",
    "ChatCommandStatus",
    "AiProvider",
    "User",
    "PasswordResetToken",
    "Course",
    "Lecture",
    "Enrollment",
    "Question",
    "Quiz",
    "QuizQuestion",
    "Assignment",
    "QuizSubmission",
    "AssignmentSubmission",
    "ProctoringViolation",
    "PublicQuizSubmission",
    "ChatCommand",
]
