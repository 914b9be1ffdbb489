"""Submission and proctoring records plus the request bodies that produce them."""
from typing import Optional, List, Dict

from pydantic import Field

from ..models.enums import SubmissionStatus, ViolationType
from .base import CamelModel, UtcDateTime, new_id, utcnow


class AnswerRecord(CamelModel):
    question_id: str
    answer: str
    is_correct: Optional[bool] = None
    points: Optional[int] = None


class RubricScore(CamelModel):
    criterion: str
    score: int
    feedback: str = ""


class QuizSubmissionCreate(CamelModel):
    quiz_id: str
    student_id: str
    answers: Optional[List[AnswerRecord]] = None
    score: Optional[int] = None
    total_points: Optional[int] = None
    percentage: Optional[int] = None
    status: SubmissionStatus = SubmissionStatus.in_progress
    submitted_at: Optional[UtcDateTime] = None
    graded_at: Optional[UtcDateTime] = None
    ai_feedback: Optional[str] = None


class QuizSubmissionRecord(QuizSubmissionCreate):
    id: str = Field(default_factory=new_id)
    started_at: UtcDateTime = Field(default_factory=utcnow)


class AssignmentSubmissionCreate(CamelModel):
    assignment_id: str
    student_id: str
    content: Optional[str] = None
    file_url: Optional[str] = None
    score: Optional[int] = None
    status: SubmissionStatus = SubmissionStatus.in_progress
    plagiarism_score: Optional[int] = None
    ai_content_score: Optional[int] = None
    rubric_scores: Optional[List[RubricScore]] = None
    instructor_feedback: Optional[str] = None
    ai_feedback: Optional[str] = None
    submitted_at: Optional[UtcDateTime] = None
    graded_at: Optional[UtcDateTime] = None


class AssignmentSubmissionRecord(AssignmentSubmissionCreate):
    id: str = Field(default_factory=new_id)


class ProctoringViolationCreate(CamelModel):
    submission_id: str
    type: ViolationType
    description: Optional[str] = None
    severity: str = "medium"
    screenshot_url: Optional[str] = None
    reviewed: bool = False
    review_note: Optional[str] = None


class ProctoringViolationRecord(ProctoringViolationCreate):
    id: str = Field(default_factory=new_id)
    timestamp: UtcDateTime = Field(default_factory=utcnow)


class ViolationReview(CamelModel):
    reviewed: bool = True
    review_note: Optional[str] = None


class PublicQuizSubmissionCreate(CamelModel):
    quiz_id: str
    identification_data: Optional[Dict[str, str]] = None
    answers: Optional[List[AnswerRecord]] = None
    score: Optional[int] = None
    total_points: Optional[int] = None
    percentage: Optional[int] = None
    status: SubmissionStatus = SubmissionStatus.in_progress
    submitted_at: Optional[UtcDateTime] = None
    ip_address: Optional[str] = None


class PublicQuizSubmissionRecord(PublicQuizSubmissionCreate):
    id: str = Field(default_factory=new_id)
    started_at: UtcDateTime = Field(default_factory=utcnow)


class SubmittedAnswer(CamelModel):
    question_id: str
    answer: str = ""


class QuizSubmitRequest(CamelModel):
    submission_id: Optional[str] = None
    answers: List[SubmittedAnswer] = Field(default_factory=list)


class PublicSubmitRequest(CamelModel):
    identification_data: Dict[str, str] = Field(default_factory=dict)
    answers: List[SubmittedAnswer] = Field(default_factory=list)


class PublicSubmitResult(CamelModel):
    submission: PublicQuizSubmissionRecord
    score: int
    total_points: int
    percentage: int
    passed: bool


class AssignmentSubmitRequest(CamelModel):
    assignment_id: str
    content: Optional[str] = None
    file_url: Optional[str] = None


class GradeRequest(CamelModel):
    score: Optional[int] = None
    instructor_feedback: Optional[str] = None
    rubric_scores: Optional[List[RubricScore]] = None
