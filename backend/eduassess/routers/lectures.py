"""Lecture materials and AI summaries."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..ai import features
from ..auth import get_current_user, require_instructor
from ..errors import AiProviderError
from ..schemas import LectureCreate, LectureRecord, LectureUpdate, UserRecord
from ..storage import Storage, get_storage
from .deps import not_found, owned_course, viewable_course, visible_course_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lectures", tags=["Lectures"])


def _owned_lecture(storage: Storage, lecture_id: str, user: UserRecord) -> LectureRecord:
    lecture = storage.get_lecture(lecture_id)
    if lecture is None:
        raise not_found("Lecture")
    owned_course(storage, lecture.course_id, user)
    return lecture


@router.get("", response_model=List[LectureRecord])
async def list_lectures(
    course_id: Optional[str] = Query(None, alias="courseId"),
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    if course_id:
        viewable_course(storage, course_id, current_user)
        return storage.get_lectures(course_id=course_id)
    course_ids = visible_course_ids(storage, current_user)
    return [l for l in storage.get_lectures() if course_ids is None or l.course_id in course_ids]


@router.post("", response_model=LectureRecord, status_code=status.HTTP_201_CREATED)
async def create_lecture(
    lecture: LectureCreate,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_course(storage, lecture.course_id, current_user)
    return storage.create_lecture(lecture)


@router.get("/{lecture_id}", response_model=LectureRecord)
async def get_lecture(
    lecture_id: str,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    lecture = storage.get_lecture(lecture_id)
    if lecture is None:
        raise not_found("Lecture")
    viewable_course(storage, lecture.course_id, current_user)
    return lecture


@router.patch("/{lecture_id}", response_model=LectureRecord)
async def update_lecture(
    lecture_id: str,
    changes: LectureUpdate,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    _owned_lecture(storage, lecture_id, current_user)
    return storage.update_lecture(lecture_id, changes.model_dump(exclude_unset=True))


@router.delete("/{lecture_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lecture(
    lecture_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    _owned_lecture(storage, lecture_id, current_user)
    storage.delete_lecture(lecture_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{lecture_id}/generate-summary", response_model=LectureRecord)
def generate_summary(
    lecture_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    """Summarize a lecture with the caller's AI provider and store the result."""
    lecture = _owned_lecture(storage, lecture_id, current_user)
    try:
        summary = features.summarize_lecture(current_user, lecture.title, lecture.description)
    except AiProviderError as e:
        logger.error(f"Lecture summary failed for {lecture_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to generate summary: {e}")
    return storage.update_lecture(lecture_id, {"summary": summary.summary, "key_points": summary.key_points})
