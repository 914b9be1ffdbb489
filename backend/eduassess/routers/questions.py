"""Question bank."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..auth import require_instructor
from ..schemas import QuestionCreate, QuestionRecord, QuestionUpdate, UserRecord
from ..storage import Storage, get_storage
from .deps import not_found, owned_course, visible_course_ids

router = APIRouter(prefix="/questions", tags=["Questions"])


def _owned_question(storage: Storage, question_id: str, user: UserRecord) -> QuestionRecord:
    question = storage.get_question(question_id)
    if question is None:
        raise not_found("Question")
    if question.course_id:
        owned_course(storage, question.course_id, user)
    return question


@router.get("", response_model=List[QuestionRecord])
async def list_questions(
    course_id: Optional[str] = Query(None, alias="courseId"),
    lecture_id: Optional[str] = Query(None, alias="lectureId"),
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    if course_id:
        owned_course(storage, course_id, current_user)
        return storage.get_questions(course_id=course_id, lecture_id=lecture_id)
    course_ids = visible_course_ids(storage, current_user)
    return [
        q for q in storage.get_questions(lecture_id=lecture_id)
        if course_ids is None or q.course_id is None or q.course_id in course_ids
    ]


@router.post("", response_model=QuestionRecord, status_code=status.HTTP_201_CREATED)
async def create_question(
    question: QuestionCreate,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    if question.course_id:
        owned_course(storage, question.course_id, current_user)
    return storage.create_question(question)


@router.patch("/{question_id}", response_model=QuestionRecord)
async def update_question(
    question_id: str,
    changes: QuestionUpdate,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    _owned_question(storage, question_id, current_user)
    return storage.update_question(question_id, changes.model_dump(exclude_unset=True))


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(
    question_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    _owned_question(storage, question_id, current_user)
    storage.delete_question(question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
