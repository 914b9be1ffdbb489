"""Proctoring violation logging, review and webcam frame analysis."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from ..ai import features
from ..auth import get_current_user, require_instructor
from ..errors import AiProviderError
from ..schemas import (
    CamelModel, ProctoringViolationCreate, ProctoringViolationRecord, UserRecord, ViolationReview,
)
from ..storage import Storage, get_storage
from .deps import forbidden, not_found, owned_quiz

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proctoring", tags=["Proctoring"])


class ViolationLogged(CamelModel):
    violation: ProctoringViolationRecord
    violation_count: int
    threshold_exceeded: bool


class FrameRequest(CamelModel):
    image_data: str
    submission_id: Optional[str] = None


class FrameAnalysis(CamelModel):
    violations: List[features.DetectedViolation]


@router.post("/violation", response_model=ViolationLogged, status_code=status.HTTP_201_CREATED)
async def log_violation(
    violation: ProctoringViolationCreate,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Record a violation against the caller's own quiz attempt."""
    submission = storage.get_quiz_submission(violation.submission_id)
    if submission is None:
        raise not_found("Submission")
    if submission.student_id != current_user.id:
        raise forbidden("This submission belongs to another student")

    record = storage.create_proctoring_violation(violation.model_copy(update={"reviewed": False, "review_note": None}))
    count = len(storage.get_proctoring_violations(submission_id=submission.id))
    quiz = storage.get_quiz(submission.quiz_id)
    threshold = quiz.violation_threshold if quiz is not None else None
    if threshold is not None and count >= threshold:
        logger.warning(f"Submission {submission.id} reached {count} proctoring violations (threshold {threshold})")
    return ViolationLogged(
        violation=record,
        violation_count=count,
        threshold_exceeded=threshold is not None and count >= threshold,
    )


@router.patch("/violations/{violation_id}", response_model=ProctoringViolationRecord)
async def review_violation(
    violation_id: str,
    review: ViolationReview,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    violation = next((v for v in storage.get_proctoring_violations() if v.id == violation_id), None)
    if violation is None:
        raise not_found("Violation")
    submission = storage.get_quiz_submission(violation.submission_id)
    if submission is not None:
        owned_quiz(storage, submission.quiz_id, current_user)
    return storage.update_proctoring_violation(violation_id, review.model_dump())


@router.post("/analyze-frame", response_model=FrameAnalysis)
def analyze_frame(
    frame: FrameRequest,
    current_user: UserRecord = Depends(get_current_user),
):
    """Ask the AI provider what it sees; an AI failure reports no violations."""
    try:
        violations = features.analyze_frame(current_user, frame.image_data)
    except AiProviderError as e:
        logger.error(f"Frame analysis failed: {e}")
        violations = []
    return FrameAnalysis(violations=violations)
