"""Quizzes: authoring, question lists, public links, and taking a quiz."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status

from ..auth import get_current_user, require_instructor
from ..errors import ValidationFailed
from ..models.enums import AssessmentStatus
from ..schemas import (
    AddQuizQuestionRequest, PublicLinkRequest, PublicQuizSubmissionRecord,
    QuizCreate, QuizQuestionCreate, QuizQuestionDetail, QuizQuestionRecord,
    QuizRecord, QuizSubmitRequest, QuizUpdate, QuizWithQuestions, UserRecord,
)
from ..services import grading, public_links
from ..storage import Storage, get_storage
from .deps import (
    base_url, check_student_access, filter_visible, forbidden, not_found,
    owned_course, owned_quiz, visible_course_ids,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Quizzes"])

# Public-link fields are only set through generate/disable-public-link
PUBLIC_LINK_FIELDS = {
    "public_access_token", "public_link_permission", "public_link_enabled", "required_identification_fields",
}


def _hide_token(quiz: QuizRecord, user: UserRecord) -> QuizRecord:
    if user.is_instructor:
        return quiz
    return quiz.model_copy(update={"public_access_token": None})


@router.get("/quizzes", response_model=List[QuizRecord])
async def list_quizzes(
    course_id: Optional[str] = Query(None, alias="courseId"),
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Students see published quizzes of their courses; instructors see all quizzes of theirs."""
    quizzes = storage.get_quizzes(course_id=course_id)
    visible = filter_visible(
        quizzes, visible_course_ids(storage, current_user), published_only=not current_user.is_instructor
    )
    return [_hide_token(q, current_user) for q in visible]


@router.post("/quizzes", response_model=QuizRecord, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    quiz: QuizWithQuestions,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    """Create a quiz, optionally with inline questions added in the order given."""
    owned_course(storage, quiz.course_id, current_user)
    created = storage.create_quiz(QuizCreate(**quiz.model_dump(exclude={"questions"} | PUBLIC_LINK_FIELDS)))

    if quiz.questions:
        questions = storage.create_questions([
            q.model_copy(update={"course_id": q.course_id or created.course_id}) for q in quiz.questions
        ])
        for index, question in enumerate(questions):
            storage.add_quiz_question(QuizQuestionCreate(quiz_id=created.id, question_id=question.id, order_index=index))
    logger.info(f"Quiz {created.id} created with {len(quiz.questions)} inline question(s)")
    return created


@router.get("/quizzes/{quiz_id}", response_model=QuizRecord)
async def get_quiz(
    quiz_id: str,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    quiz = storage.get_quiz(quiz_id)
    if quiz is None:
        raise not_found("Quiz")
    check_student_access(storage, quiz.course_id, quiz.status, current_user)
    return _hide_token(quiz, current_user)


@router.patch("/quizzes/{quiz_id}", response_model=QuizRecord)
async def update_quiz(
    quiz_id: str,
    changes: QuizUpdate,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_quiz(storage, quiz_id, current_user)
    return storage.update_quiz(quiz_id, changes.model_dump(exclude_unset=True))


@router.delete("/quizzes/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quiz(
    quiz_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_quiz(storage, quiz_id, current_user)
    storage.delete_quiz(quiz_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/quizzes/{quiz_id}/publish", response_model=QuizRecord)
async def publish_quiz(
    quiz_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_quiz(storage, quiz_id, current_user)
    if not storage.get_quiz_questions(quiz_id):
        raise ValidationFailed("Add at least one question before publishing")
    return storage.update_quiz(quiz_id, {"status": AssessmentStatus.published})


@router.get("/quizzes/{quiz_id}/questions", response_model=List[QuizQuestionDetail])
async def list_quiz_questions(
    quiz_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_quiz(storage, quiz_id, current_user)
    return storage.get_quiz_questions(quiz_id)


@router.post("/quizzes/{quiz_id}/questions", response_model=QuizQuestionRecord, status_code=status.HTTP_201_CREATED)
async def add_quiz_question(
    quiz_id: str,
    request: AddQuizQuestionRequest,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    """Attach a bank question; without an order index it goes to the end."""
    owned_quiz(storage, quiz_id, current_user)
    if storage.get_question(request.question_id) is None:
        raise not_found("Question")

    existing = storage.get_quiz_questions(quiz_id)
    if any(link.question_id == request.question_id for link in existing):
        raise ValidationFailed("Question is already on this quiz")
    order_index = request.order_index
    if order_index is None:
        order_index = max((link.order_index for link in existing), default=-1) + 1
    elif any(link.order_index == order_index for link in existing):
        raise ValidationFailed(f"Order index {order_index} is already used on this quiz")

    return storage.add_quiz_question(QuizQuestionCreate(
        quiz_id=quiz_id, question_id=request.question_id, order_index=order_index,
    ))


@router.delete("/quizzes/{quiz_id}/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_quiz_question(
    quiz_id: str,
    question_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_quiz(storage, quiz_id, current_user)
    storage.remove_quiz_question(quiz_id, question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/quizzes/{quiz_id}/generate-public-link", response_model=public_links.PublicLink)
async def generate_public_link(
    quiz_id: str,
    request: Request,
    link: Optional[PublicLinkRequest] = Body(None),
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    """Issue a new public token for the quiz; any previous link stops working."""
    owned_quiz(storage, quiz_id, current_user)
    return public_links.generate_link(storage, quiz_id, link or PublicLinkRequest(), base_url(request))


@router.post("/quizzes/{quiz_id}/disable-public-link", response_model=QuizRecord)
async def disable_public_link(
    quiz_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_quiz(storage, quiz_id, current_user)
    return public_links.disable_link(storage, quiz_id)


@router.get("/quizzes/{quiz_id}/public-submissions", response_model=List[PublicQuizSubmissionRecord])
async def list_public_submissions(
    quiz_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_quiz(storage, quiz_id, current_user)
    return storage.get_public_quiz_submissions(quiz_id)


@router.get("/quiz/{quiz_id}/take", response_model=grading.QuizForTaking)
async def take_quiz(
    quiz_id: str,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """The quiz with its questions, answers removed, shuffled as configured."""
    quiz = storage.get_quiz(quiz_id)
    if quiz is None:
        raise not_found("Quiz")
    check_student_access(storage, quiz.course_id, quiz.status, current_user)
    return grading.take_quiz(storage, quiz_id)


@router.post("/quiz/{quiz_id}/start")
async def start_quiz(
    quiz_id: str,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    quiz = storage.get_quiz(quiz_id)
    if quiz is None:
        raise not_found("Quiz")
    check_student_access(storage, quiz.course_id, quiz.status, current_user)
    submission = grading.start_quiz(storage, quiz_id, current_user.id)
    return {"submissionId": submission.id}


@router.post("/quiz/{quiz_id}/submit", response_model=grading.QuizSubmitResult)
async def submit_quiz(
    quiz_id: str,
    request: QuizSubmitRequest,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Score the attempt; without a submission id a new attempt is started and scored at once."""
    quiz = storage.get_quiz(quiz_id)
    if quiz is None:
        raise not_found("Quiz")
    check_student_access(storage, quiz.course_id, quiz.status, current_user)

    submission_id = request.submission_id
    if submission_id is None:
        submission_id = grading.start_quiz(storage, quiz_id, current_user.id).id
    else:
        submission = storage.get_quiz_submission(submission_id)
        if submission is None:
            raise not_found("Submission")
        if submission.student_id != current_user.id:
            raise forbidden("This submission belongs to another student")

    return grading.submit_quiz(storage, quiz_id, submission_id, request.answers)
