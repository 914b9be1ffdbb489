"""Quiz and assignment submissions, grading and AI-content checks."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..auth import get_current_user, require_instructor
from ..errors import AiProviderError, ValidationFailed
from ..schemas import (
    AssignmentSubmissionRecord, AssignmentSubmitRequest, GradeRequest,
    ProctoringViolationRecord, QuizSubmissionRecord, UserRecord, utcnow,
)
from ..services import grading
from ..storage import Storage, get_storage
from .deps import (
    check_student_access, forbidden, not_found, owned_assignment, owned_quiz,
    visible_course_ids,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Submissions"])


def _quiz_submission_for(storage: Storage, submission_id: str, user: UserRecord) -> QuizSubmissionRecord:
    submission = storage.get_quiz_submission(submission_id)
    if submission is None:
        raise not_found("Submission")
    if user.is_instructor:
        owned_quiz(storage, submission.quiz_id, user)
    elif submission.student_id != user.id:
        raise forbidden("This submission belongs to another student")
    return submission


def _assignment_submission_for(storage: Storage, submission_id: str, user: UserRecord) -> AssignmentSubmissionRecord:
    submission = storage.get_assignment_submission(submission_id)
    if submission is None:
        raise not_found("Submission")
    if user.is_instructor:
        owned_assignment(storage, submission.assignment_id, user)
    elif submission.student_id != user.id:
        raise forbidden("This submission belongs to another student")
    return submission


@router.get("/quiz-submissions", response_model=List[QuizSubmissionRecord])
async def list_quiz_submissions(
    quiz_id: Optional[str] = Query(None, alias="quizId"),
    student_id: Optional[str] = Query(None, alias="studentId"),
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Students get their own submissions; instructors get those for quizzes they teach."""
    if not current_user.is_instructor:
        return storage.get_quiz_submissions(quiz_id=quiz_id, student_id=current_user.id)
    if quiz_id:
        owned_quiz(storage, quiz_id, current_user)
        return storage.get_quiz_submissions(quiz_id=quiz_id, student_id=student_id)

    course_ids = visible_course_ids(storage, current_user)
    quiz_ids = {q.id for q in storage.get_quizzes() if course_ids is None or q.course_id in course_ids}
    return [s for s in storage.get_quiz_submissions(student_id=student_id) if s.quiz_id in quiz_ids]


@router.get("/quiz-submissions/{submission_id}", response_model=QuizSubmissionRecord)
async def get_quiz_submission(
    submission_id: str,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return _quiz_submission_for(storage, submission_id, current_user)


@router.get("/quiz-submissions/{submission_id}/proctoring", response_model=List[ProctoringViolationRecord])
async def get_submission_violations(
    submission_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    _quiz_submission_for(storage, submission_id, current_user)
    return storage.get_proctoring_violations(submission_id=submission_id)


@router.post("/assignment-submissions", response_model=AssignmentSubmissionRecord, status_code=status.HTTP_201_CREATED)
async def submit_assignment(
    request: AssignmentSubmitRequest,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    assignment = storage.get_assignment(request.assignment_id)
    if assignment is None:
        raise not_found("Assignment")
    check_student_access(storage, assignment.course_id, assignment.status, current_user)
    if assignment.due_date and utcnow() > assignment.due_date and not assignment.allow_late_submission:
        raise ValidationFailed("The due date for this assignment has passed")
    return grading.submit_assignment(storage, current_user.id, request)


@router.get("/assignment-submissions", response_model=List[AssignmentSubmissionRecord])
async def list_assignment_submissions(
    assignment_id: Optional[str] = Query(None, alias="assignmentId"),
    student_id: Optional[str] = Query(None, alias="studentId"),
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    if not current_user.is_instructor:
        return storage.get_assignment_submissions(assignment_id=assignment_id, student_id=current_user.id)
    if assignment_id:
        owned_assignment(storage, assignment_id, current_user)
        return storage.get_assignment_submissions(assignment_id=assignment_id, student_id=student_id)

    course_ids = visible_course_ids(storage, current_user)
    assignment_ids = {a.id for a in storage.get_assignments() if course_ids is None or a.course_id in course_ids}
    return [s for s in storage.get_assignment_submissions(student_id=student_id) if s.assignment_id in assignment_ids]


@router.get("/assignment-submissions/{submission_id}", response_model=AssignmentSubmissionRecord)
async def get_assignment_submission(
    submission_id: str,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return _assignment_submission_for(storage, submission_id, current_user)


@router.patch("/assignment-submissions/{submission_id}/grade", response_model=AssignmentSubmissionRecord)
async def grade_submission(
    submission_id: str,
    grade: GradeRequest,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    """Manual grade; the score defaults to the sum of the rubric scores."""
    _assignment_submission_for(storage, submission_id, current_user)
    return grading.grade_assignment_submission(storage, submission_id, grade)


@router.post("/assignment-submissions/{submission_id}/ai-grade")
def ai_grade_submission(
    submission_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    _assignment_submission_for(storage, submission_id, current_user)
    try:
        submission, grade = grading.ai_grade_submission(storage, submission_id, current_user)
    except AiProviderError as e:
        logger.error(f"AI grading failed for submission {submission_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"AI grading failed: {e}")
    return {
        "submission": submission.model_dump(mode="json", by_alias=True),
        "graded": grade.model_dump(mode="json", by_alias=True),
        "score": grade.score,
    }


@router.post("/assignment-submissions/{submission_id}/detect-ai")
def detect_ai_content(
    submission_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    _assignment_submission_for(storage, submission_id, current_user)
    try:
        submission, detection = grading.detect_ai(storage, submission_id, current_user)
    except AiProviderError as e:
        logger.error(f"AI content detection failed for submission {submission_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"AI content detection failed: {e}")
    return {
        "aiProbability": detection.ai_probability,
        "reasoning": detection.reasoning,
        "submission": submission.model_dump(mode="json", by_alias=True),
    }
