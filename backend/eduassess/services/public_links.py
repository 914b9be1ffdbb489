"""
Unauthenticated quiz access through a per-quiz token.

A quiz carries at most one live token. Regenerating replaces it, disabling
clears it, and a lookup that does not match an enabled link is "not found".
"""
import logging
from typing import Dict, List, Optional

from pydantic import Field

from ..errors import AccessDenied, ValidationFailed
from ..models.enums import PublicLinkPermission, SubmissionStatus
from ..schemas import (
    CamelModel, DEFAULT_IDENTIFICATION_FIELDS, QuizRecord, QuestionRecord,
    PublicLinkRequest, PublicQuizSubmissionCreate, PublicSubmitRequest, PublicSubmitResult,
    utcnow,
)
from ..storage import Storage
from .scoring import score_answers

logger = logging.getLogger(__name__)


class PublicLink(CamelModel):
    quiz: QuizRecord
    public_url: str


class PublicQuestion(CamelModel):
    id: str
    type: str
    text: str
    options: Optional[List[str]] = None
    points: int
    image_url: Optional[str] = None
    correct_answer: Optional[str] = None
    explanation: Optional[str] = None


class PublicQuizView(CamelModel):
    quiz: Dict
    questions: List[PublicQuestion] = Field(default_factory=list)
    required_fields: List[str]
    can_attempt: bool


def public_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/public/quiz/{token}"


def generate_link(storage: Storage, quiz_id: str, request: PublicLinkRequest, base_url: str) -> Optional[PublicLink]:
    quiz = storage.generate_quiz_public_link(quiz_id, request.permission, request.required_fields)
    if quiz is None:
        return None
    logger.info(f"Issued {quiz.public_link_permission.value} public link for quiz {quiz_id}")
    return PublicLink(quiz=quiz, public_url=public_url(base_url, quiz.public_access_token))


def disable_link(storage: Storage, quiz_id: str) -> Optional[QuizRecord]:
    return storage.update_quiz(quiz_id, {"public_link_enabled": False, "public_access_token": None})


def _required_fields(quiz: QuizRecord) -> List[str]:
    if quiz.required_identification_fields is None:
        return list(DEFAULT_IDENTIFICATION_FIELDS)
    return list(quiz.required_identification_fields)


def _public_question(question: QuestionRecord, reveal_answers: bool) -> PublicQuestion:
    public = PublicQuestion(
        id=question.id,
        type=question.type.value,
        text=question.text,
        options=question.options,
        points=question.points,
        image_url=question.image_url,
    )
    if reveal_answers:
        public.correct_answer = question.correct_answer
        public.explanation = question.explanation
    return public


def view_quiz(storage: Storage, token: str) -> Optional[PublicQuizView]:
    """Quiz as seen through a public link; answers are only shown on view links."""
    quiz = storage.get_quiz_by_public_token(token)
    if quiz is None:
        return None
    can_attempt = quiz.public_link_permission == PublicLinkPermission.attempt
    questions = [
        _public_question(link.question, reveal_answers=not can_attempt)
        for link in storage.get_quiz_questions(quiz.id)
    ]
    return PublicQuizView(
        quiz=quiz.model_dump(mode="json", by_alias=True, exclude={"public_access_token"}),
        questions=questions,
        required_fields=_required_fields(quiz),
        can_attempt=can_attempt,
    )


def submit_quiz(
    storage: Storage, token: str, request: PublicSubmitRequest, ip_address: Optional[str] = None
) -> Optional[PublicSubmitResult]:
    """Score an anonymous attempt. Identification is checked before anything is written."""
    quiz = storage.get_quiz_by_public_token(token)
    if quiz is None:
        return None
    if quiz.public_link_permission != PublicLinkPermission.attempt:
        raise AccessDenied("This quiz link does not allow submissions")

    identification = request.identification_data or {}
    missing = [f for f in _required_fields(quiz) if not str(identification.get(f) or "").strip()]
    if missing:
        raise ValidationFailed(f"Missing required fields: {', '.join(missing)}")

    questions = [link.question for link in storage.get_quiz_questions(quiz.id)]
    scored, score, total_points, percentage = score_answers(questions, request.answers)

    submission = storage.create_public_quiz_submission(PublicQuizSubmissionCreate(
        quiz_id=quiz.id,
        identification_data=identification,
        answers=scored,
        score=score,
        total_points=total_points,
        percentage=percentage,
        status=SubmissionStatus.submitted,
        submitted_at=utcnow(),
        ip_address=ip_address,
    ))
    logger.info(f"Public submission {submission.id} for quiz {quiz.id}: {percentage}%")
    return PublicSubmitResult(
        submission=submission,
        score=score,
        total_points=total_points,
        percentage=percentage,
        passed=percentage >= (quiz.passing_score if quiz.passing_score is not None else 60),
    )
