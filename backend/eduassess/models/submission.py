"""Submission models: quiz, assignment and public quiz submissions plus proctoring violations."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Boolean, Integer, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
import uuid

from ..database import Base
from .enums import SubmissionStatus, ViolationType


class QuizSubmission(Base):
    """A student's attempt at a quiz."""
    __tablename__ = "quiz_submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    quiz_id = Column(String(36), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    answers = Column(JSON)
    score = Column(Integer)
    total_points = Column(Integer)
    percentage = Column(Integer)
    status = Column(SQLEnum(SubmissionStatus, name="submission_status"), nullable=False, default=SubmissionStatus.in_progress)
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    submitted_at = Column(DateTime(timezone=True))
    graded_at = Column(DateTime(timezone=True))
    ai_feedback = Column(Text)

    def __repr__(self):
        return f"<QuizSubmission(id={self.id}, status='{self.status}')>"

    @property
    def is_graded(self):
        return self.status == SubmissionStatus.graded


class AssignmentSubmission(Base):
    """A student's submission for an assignment."""
    __tablename__ = "assignment_submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assignment_id = Column(String(36), ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text)
    file_url = Column(String(500))
    score = Column(Integer)
    status = Column(SQLEnum(SubmissionStatus, name="submission_status"), nullable=False, default=SubmissionStatus.in_progress)
    plagiarism_score = Column(Integer)
    ai_content_score = Column(Integer)
    rubric_scores = Column(JSON)
    instructor_feedback = Column(Text)
    ai_feedback = Column(Text)
    submitted_at = Column(DateTime(timezone=True))
    graded_at = Column(DateTime(timezone=True))

    def __repr__(self):
        return f"<AssignmentSubmission(id={self.id}, status='{self.status}')>"

    @property
    def is_graded(self):
        return self.status == SubmissionStatus.graded


class ProctoringViolation(Base):
    """Integrity event logged against a quiz submission."""
    __tablename__ = "proctoring_violations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    submission_id = Column(String(36), ForeignKey("quiz_submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(ViolationType, name="violation_type"), nullable=False)
    description = Column(Text)
    severity = Column(String(20), nullable=False, default="medium")
    screenshot_url = Column(String(500))
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    reviewed = Column(Boolean, default=False)
    review_note = Column(Text)

    def __repr__(self):
        return f"<ProctoringViolation(id={self.id}, type='{self.type}')>"


class PublicQuizSubmission(Base):
    """Anonymous attempt made through a quiz's public link."""
    __tablename__ = "public_quiz_submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    quiz_id = Column(String(36), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    identification_data = Column(JSON)
    answers = Column(JSON)
    score = Column(Integer)
    total_points = Column(Integer)
    percentage = Column(Integer)
    status = Column(SQLEnum(SubmissionStatus, name="submission_status"), nullable=False, default=SubmissionStatus.in_progress)
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    submitted_at = Column(DateTime(timezone=True))
    ip_address = Column(String(64))

    def __repr__(self):
        return f"<PublicQuizSubmission(id={self.id}, quiz_id={self.quiz_id})>"
