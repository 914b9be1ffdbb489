"""Dashboards, analytics, student profiles and user administration."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..auth import get_current_user, require_admin, require_instructor
from ..models.enums import AssessmentStatus, SubmissionStatus, UserRole
from ..schemas import AssignmentRecord, QuizRecord, UserPublic, UserRecord, utcnow
from ..services.stats import (
    CourseAnalytics, DashboardStats, StudentPerformance,
    get_course_analytics, get_dashboard_stats, get_student_performance,
)
from ..storage import Storage, get_storage
from .deps import enrolled_course_ids, forbidden, not_found, owned_course, public_user

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    return get_dashboard_stats(storage, current_user.id)


@router.get("/analytics", response_model=CourseAnalytics)
async def analytics(
    course_id: Optional[str] = Query(None, alias="courseId"),
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    """One course when courseId is given, otherwise every course the caller teaches."""
    if course_id:
        owned_course(storage, course_id, current_user)
        return get_course_analytics(storage, course_id=course_id)
    if current_user.is_admin:
        return get_course_analytics(storage)
    return get_course_analytics(storage, instructor_id=current_user.id)


@router.get("/students/{student_id}", response_model=StudentPerformance)
async def student_performance(
    student_id: str,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    if not current_user.is_instructor and current_user.id != student_id:
        raise forbidden("You can only view your own profile")
    performance = get_student_performance(storage, student_id)
    if performance is None:
        raise not_found("Student")
    return performance


@router.get("/users", response_model=List[UserPublic])
async def list_users(
    role: Optional[UserRole] = None,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    return [public_user(u) for u in storage.get_users(role=role)]


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    current_user: UserRecord = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    if user_id == current_user.id:
        raise forbidden("You cannot delete your own account")
    storage.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/student/quizzes/upcoming", response_model=List[QuizRecord])
async def upcoming_quizzes(
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Published quizzes in the caller's courses that are still open and not yet completed."""
    now = utcnow()
    course_ids = enrolled_course_ids(storage, current_user.id)
    completed = {
        s.quiz_id for s in storage.get_quiz_submissions(student_id=current_user.id)
        if s.status != SubmissionStatus.in_progress
    }
    return [
        q.model_copy(update={"public_access_token": None})
        for q in storage.get_quizzes()
        if q.course_id in course_ids
        and q.status == AssessmentStatus.published
        and q.id not in completed
        and (q.end_date is None or q.end_date > now)
    ]


@router.get("/student/assignments/pending", response_model=List[AssignmentRecord])
async def pending_assignments(
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Published assignments in the caller's courses with nothing submitted yet."""
    course_ids = enrolled_course_ids(storage, current_user.id)
    submitted = {
        s.assignment_id for s in storage.get_assignment_submissions(student_id=current_user.id)
        if s.status != SubmissionStatus.in_progress
    }
    return [
        a for a in storage.get_assignments()
        if a.course_id in course_ids
        and a.status == AssessmentStatus.published
        and a.id not in submitted
    ]
