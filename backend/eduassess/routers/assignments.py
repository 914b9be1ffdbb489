"""Assignments and bulk AI grading."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..auth import get_current_user, require_instructor
from ..schemas import (
    AssignmentCreate, AssignmentRecord, AssignmentSubmissionRecord, AssignmentUpdate, UserRecord,
)
from ..services import grading
from ..storage import Storage, get_storage
from .deps import (
    check_student_access, filter_visible, not_found, owned_assignment, owned_course,
    visible_course_ids,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignments", tags=["Assignments"])


@router.get("", response_model=List[AssignmentRecord])
async def list_assignments(
    course_id: Optional[str] = Query(None, alias="courseId"),
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    assignments = storage.get_assignments(course_id=course_id)
    return filter_visible(
        assignments, visible_course_ids(storage, current_user), published_only=not current_user.is_instructor
    )


@router.post("", response_model=AssignmentRecord, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    assignment: AssignmentCreate,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_course(storage, assignment.course_id, current_user)
    return storage.create_assignment(assignment)


@router.get("/{assignment_id}", response_model=AssignmentRecord)
async def get_assignment(
    assignment_id: str,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    assignment = storage.get_assignment(assignment_id)
    if assignment is None:
        raise not_found("Assignment")
    check_student_access(storage, assignment.course_id, assignment.status, current_user)
    return assignment


@router.patch("/{assignment_id}", response_model=AssignmentRecord)
async def update_assignment(
    assignment_id: str,
    changes: AssignmentUpdate,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_assignment(storage, assignment_id, current_user)
    return storage.update_assignment(assignment_id, changes.model_dump(exclude_unset=True))


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_assignment(storage, assignment_id, current_user)
    storage.delete_assignment(assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{assignment_id}/submissions", response_model=List[AssignmentSubmissionRecord])
async def list_submissions(
    assignment_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_assignment(storage, assignment_id, current_user)
    return storage.get_assignment_submissions(assignment_id=assignment_id)


@router.post("/{assignment_id}/ai-grade-all", response_model=grading.BulkGradeResult)
def ai_grade_all(
    assignment_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    """AI-grade every submission that is not graded yet; failures are reported, not raised."""
    owned_assignment(storage, assignment_id, current_user)
    result = grading.ai_grade_all(storage, assignment_id, current_user)
    logger.info(f"Bulk AI grading for {assignment_id}: {result.graded_count} graded, {result.failed_count} failed")
    return result
