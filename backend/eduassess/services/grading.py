"""Quiz taking and scoring, manual and AI grading of assignment submissions."""
import logging
import random
from typing import List, Optional, Tuple

from pydantic import Field

from ..ai import features
from ..errors import AiProviderError, ValidationFailed
from ..models.enums import QuestionType, SubmissionStatus
from ..schemas import (
    CamelModel, QuizRecord, QuizSubmissionCreate, QuizSubmissionRecord,
    AssignmentSubmissionCreate, AssignmentSubmissionRecord, AssignmentSubmitRequest,
    GradeRequest, SubmittedAnswer, utcnow,
)
from ..storage import Storage
from .scoring import score_answers

logger = logging.getLogger(__name__)


class QuestionForTaking(CamelModel):
    """A question as shown to a student: no correct answer, no explanation."""
    id: str
    type: QuestionType
    text: str
    options: Optional[List[str]] = None
    points: int
    image_url: Optional[str] = None


class QuizForTaking(QuizRecord):
    questions: List[QuestionForTaking] = Field(default_factory=list)


class QuizSubmitResult(CamelModel):
    submission_id: str
    score: int
    total_points: int
    percentage: int


def take_quiz(storage: Storage, quiz_id: str, rng: random.Random = None) -> Optional[QuizForTaking]:
    quiz = storage.get_quiz(quiz_id)
    if quiz is None:
        return None
    rng = rng or random.Random()

    questions = []
    for link in storage.get_quiz_questions(quiz_id):
        question = link.question
        options = list(question.options) if question.options else question.options
        if options and quiz.randomize_options:
            rng.shuffle(options)
        questions.append(QuestionForTaking(
            id=question.id,
            type=question.type,
            text=question.text,
            options=options,
            points=question.points,
            image_url=question.image_url,
        ))
    if quiz.randomize_questions:
        rng.shuffle(questions)

    return QuizForTaking(**{**quiz.model_dump(), "public_access_token": None}, questions=questions)


def start_quiz(storage: Storage, quiz_id: str, student_id: str) -> Optional[QuizSubmissionRecord]:
    if storage.get_quiz(quiz_id) is None:
        return None
    submission = storage.create_quiz_submission(QuizSubmissionCreate(
        quiz_id=quiz_id,
        student_id=student_id,
        status=SubmissionStatus.in_progress,
    ))
    logger.info(f"Student {student_id} started quiz {quiz_id} (submission {submission.id})")
    return submission


def submit_quiz(
    storage: Storage, quiz_id: str, submission_id: str, answers: List[SubmittedAnswer]
) -> Optional[QuizSubmitResult]:
    """Score a quiz attempt and write every graded field in one update."""
    submission = storage.get_quiz_submission(submission_id)
    if submission is None:
        return None
    if submission.quiz_id != quiz_id:
        raise ValidationFailed("Submission does not belong to this quiz")

    questions = [link.question for link in storage.get_quiz_questions(submission.quiz_id)]
    scored, score, total_points, percentage = score_answers(questions, answers)

    now = utcnow()
    storage.update_quiz_submission(submission_id, {
        "answers": scored,
        "score": score,
        "total_points": total_points,
        "percentage": percentage,
        "status": SubmissionStatus.graded,
        "submitted_at": now,
        "graded_at": now,
    })
    logger.info(f"Quiz submission {submission_id} scored {score}/{total_points}")
    return QuizSubmitResult(submission_id=submission_id, score=score, total_points=total_points, percentage=percentage)


def submit_assignment(
    storage: Storage, student_id: str, request: AssignmentSubmitRequest
) -> Optional[AssignmentSubmissionRecord]:
    if storage.get_assignment(request.assignment_id) is None:
        return None
    if not (request.content or request.file_url):
        raise ValidationFailed("A submission needs content or a file")
    return storage.create_assignment_submission(AssignmentSubmissionCreate(
        assignment_id=request.assignment_id,
        student_id=student_id,
        content=request.content,
        file_url=request.file_url,
        status=SubmissionStatus.submitted,
        submitted_at=utcnow(),
    ))


def grade_assignment_submission(
    storage: Storage, submission_id: str, grade: GradeRequest
) -> Optional[AssignmentSubmissionRecord]:
    """Manual grade. Rubric scores must name criteria of the assignment's rubric."""
    submission = storage.get_assignment_submission(submission_id)
    if submission is None:
        return None
    assignment = storage.get_assignment(submission.assignment_id)
    if assignment is None:
        return None

    rubric_scores = grade.rubric_scores or []
    limits = {c.criterion: c.max_points for c in assignment.rubric or []}
    for rs in rubric_scores:
        if rs.criterion not in limits:
            raise ValidationFailed(f"Unknown rubric criterion: {rs.criterion}")
        if rs.score < 0 or rs.score > limits[rs.criterion]:
            raise ValidationFailed(f"Score for '{rs.criterion}' must be between 0 and {limits[rs.criterion]}")

    score = grade.score
    if score is None:
        if not rubric_scores:
            raise ValidationFailed("A score or rubric scores are required")
        score = sum(rs.score for rs in rubric_scores)
    if score < 0 or score > assignment.max_score:
        raise ValidationFailed(f"Score must be between 0 and {assignment.max_score}")

    return storage.update_assignment_submission(submission_id, {
        "score": score,
        "instructor_feedback": grade.instructor_feedback,
        "rubric_scores": rubric_scores or None,
        "status": SubmissionStatus.graded,
        "graded_at": utcnow(),
    })


def ai_grade_submission(
    storage: Storage, submission_id: str, user
) -> Optional[Tuple[AssignmentSubmissionRecord, features.AiGrade]]:
    """AI grade; nothing is written unless the provider call and parse both succeed."""
    submission = storage.get_assignment_submission(submission_id)
    if submission is None:
        return None
    assignment = storage.get_assignment(submission.assignment_id)
    if assignment is None:
        return None

    grade = features.grade_submission(user, assignment, submission)
    updated = storage.update_assignment_submission(submission_id, {
        "score": grade.score,
        "ai_feedback": grade.feedback,
        "rubric_scores": grade.rubric_scores or None,
        "status": SubmissionStatus.graded,
        "graded_at": utcnow(),
    })
    logger.info(f"AI graded submission {submission_id}: {grade.score}/{assignment.max_score}")
    return updated, grade


class BulkGradeResult(CamelModel):
    graded_count: int = 0
    failed_count: int = 0
    failed: List[str] = Field(default_factory=list)


def ai_grade_all(storage: Storage, assignment_id: str, user) -> Optional[BulkGradeResult]:
    """AI grade every submission of an assignment that is not graded yet."""
    if storage.get_assignment(assignment_id) is None:
        return None
    result = BulkGradeResult()
    for submission in storage.get_assignment_submissions(assignment_id=assignment_id):
        if submission.status == SubmissionStatus.graded:
            continue
        try:
            ai_grade_submission(storage, submission.id, user)
            result.graded_count += 1
        except AiProviderError as e:
            logger.error(f"AI grading failed for submission {submission.id}: {e}")
            result.failed_count += 1
            result.failed.append(submission.id)
    return result


def detect_ai(
    storage: Storage, submission_id: str, user
) -> Optional[Tuple[AssignmentSubmissionRecord, features.AiDetection]]:
    submission = storage.get_assignment_submission(submission_id)
    if submission is None:
        return None
    detection = features.detect_ai_content(user, submission.content or "")
    updated = storage.update_assignment_submission(submission_id, {"ai_content_score": detection.ai_probability})
    return updated, detection
