"""Courses, enrollments and the course gradebook."""
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..auth import get_current_user, require_instructor
from ..errors import ValidationFailed
from ..models.enums import UserRole
from ..schemas import (
    CourseCreate, CourseRecord, CourseRequest, CourseUpdate,
    EnrollmentCreate, EnrollmentRecord, EnrollRequest, UserPublic, UserRecord,
)
from ..services.gradebook import (
    Gradebook, content_disposition, csv_filename, export_gradebook_csv, get_gradebook,
)
from ..storage import Storage, get_storage
from .deps import (
    enrolled_course_ids, not_found, owned_course, public_user, viewable_course,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get("", response_model=List[CourseRecord])
async def list_courses(
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Admins see every course, instructors their own, students the ones they are enrolled in."""
    if current_user.is_admin:
        return storage.get_courses()
    if current_user.is_instructor:
        return storage.get_courses(instructor_id=current_user.id)
    enrolled = enrolled_course_ids(storage, current_user.id)
    return [c for c in storage.get_courses() if c.id in enrolled]


@router.post("", response_model=CourseRecord, status_code=status.HTTP_201_CREATED)
async def create_course(
    course: CourseRequest,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    created = storage.create_course(CourseCreate(**course.model_dump(), instructor_id=current_user.id))
    logger.info(f"Course {created.code} created by {current_user.username}")
    return created


@router.get("/{course_id}", response_model=CourseRecord)
async def get_course(
    course_id: str,
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return viewable_course(storage, course_id, current_user)


@router.patch("/{course_id}", response_model=CourseRecord)
async def update_course(
    course_id: str,
    changes: CourseUpdate,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_course(storage, course_id, current_user)
    return storage.update_course(course_id, changes.model_dump(exclude_unset=True))


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_course(storage, course_id, current_user)
    storage.delete_course(course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{course_id}/students", response_model=List[UserPublic])
async def list_course_students(
    course_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_course(storage, course_id, current_user)
    students = []
    for enrollment in storage.get_enrollments(course_id=course_id):
        student = storage.get_user(enrollment.student_id)
        if student is not None:
            students.append(public_user(student))
    return students


@router.post("/{course_id}/enroll", response_model=EnrollmentRecord, status_code=status.HTTP_201_CREATED)
async def enroll_student(
    course_id: str,
    request: EnrollRequest,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_course(storage, course_id, current_user)
    student = storage.get_user_by_email(request.student_email)
    if student is None:
        raise not_found("Student")
    if student.role != UserRole.student:
        raise ValidationFailed("Only students can be enrolled")
    if storage.get_enrollments(course_id=course_id, student_id=student.id):
        raise ValidationFailed("Student is already enrolled in this course")
    return storage.create_enrollment(EnrollmentCreate(course_id=course_id, student_id=student.id))


@router.delete("/{course_id}/enroll/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll_student(
    course_id: str,
    student_id: str,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    owned_course(storage, course_id, current_user)
    storage.delete_enrollment(course_id, student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{course_id}/gradebook", response_model=Gradebook)
async def course_gradebook(
    course_id: str,
    format: str = "json",
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    """Gradebook as JSON, or as a CSV download with ?format=csv."""
    owned_course(storage, course_id, current_user)
    gradebook = get_gradebook(storage, course_id)
    if gradebook is None:
        raise not_found("Course")
    if format == "csv":
        return Response(
            content=export_gradebook_csv(gradebook),
            media_type="text/csv",
            headers={"Content-Disposition": content_disposition(csv_filename(gradebook.course))},
        )
    return gradebook
