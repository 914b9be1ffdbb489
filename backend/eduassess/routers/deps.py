"""Lookups and access checks shared by the API routers."""
import os
from typing import List, Optional, Set

from fastapi import HTTPException, Request, status

from ..models.enums import AssessmentStatus
from ..schemas import (
    AssignmentRecord, CourseRecord, QuizRecord, UserPublic, UserRecord,
)
from ..storage import Storage


def not_found(entity: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")


def forbidden(detail: str = "Not allowed") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def public_user(user: UserRecord) -> UserPublic:
    return UserPublic.model_validate(user.model_dump())


def base_url(request: Request) -> str:
    """Origin used in shareable links: PUBLIC_BASE_URL, else the request's own."""
    return (os.getenv("PUBLIC_BASE_URL") or str(request.base_url)).rstrip("/")


def enrolled_course_ids(storage: Storage, student_id: str) -> Set[str]:
    return {e.course_id for e in storage.get_enrollments(student_id=student_id)}


def visible_course_ids(storage: Storage, user: UserRecord) -> Optional[Set[str]]:
    """Courses a user may see: None means every course (admins)."""
    if user.is_admin:
        return None
    if user.is_instructor:
        return {c.id for c in storage.get_courses(instructor_id=user.id)}
    return enrolled_course_ids(storage, user.id)


def get_course_or_404(storage: Storage, course_id: str) -> CourseRecord:
    course = storage.get_course(course_id)
    if course is None:
        raise not_found("Course")
    return course


def owned_course(storage: Storage, course_id: str, user: UserRecord) -> CourseRecord:
    """The course, if the user teaches it (admins manage every course)."""
    course = get_course_or_404(storage, course_id)
    if not user.is_admin and course.instructor_id != user.id:
        raise forbidden("You do not teach this course")
    return course


def viewable_course(storage: Storage, course_id: str, user: UserRecord) -> CourseRecord:
    course = get_course_or_404(storage, course_id)
    if user.is_admin or course.instructor_id == user.id:
        return course
    if course.id in enrolled_course_ids(storage, user.id):
        return course
    raise forbidden("You are not enrolled in this course")


def owned_quiz(storage: Storage, quiz_id: str, user: UserRecord) -> QuizRecord:
    quiz = storage.get_quiz(quiz_id)
    if quiz is None:
        raise not_found("Quiz")
    owned_course(storage, quiz.course_id, user)
    return quiz


def owned_assignment(storage: Storage, assignment_id: str, user: UserRecord) -> AssignmentRecord:
    assignment = storage.get_assignment(assignment_id)
    if assignment is None:
        raise not_found("Assignment")
    owned_course(storage, assignment.course_id, user)
    return assignment


def check_student_access(storage: Storage, course_id: str, status_value: AssessmentStatus, user: UserRecord) -> None:
    """Students only reach published work in courses they are enrolled in."""
    if user.is_instructor:
        if not user.is_admin:
            owned_course(storage, course_id, user)
        return
    if status_value != AssessmentStatus.published or course_id not in enrolled_course_ids(storage, user.id):
        raise forbidden("This assessment is not available to you")


def filter_visible(items: List, course_ids: Optional[Set[str]], published_only: bool = False) -> List:
    if course_ids is not None:
        items = [i for i in items if i.course_id in course_ids]
    if published_only:
        items = [i for i in items if i.status == AssessmentStatus.published]
    return items
