"""Course, lecture and enrollment records."""
from typing import Optional, List

from pydantic import Field

from .base import CamelModel, UtcDateTime, new_id, utcnow


class CourseCreate(CamelModel):
    name: str
    code: str
    description: Optional[str] = None
    semester: str
    instructor_id: str


class CourseRequest(CamelModel):
    """Course fields a client sends; the instructor is the caller."""
    name: str
    code: str
    description: Optional[str] = None
    semester: str


class CourseRecord(CourseCreate):
    id: str = Field(default_factory=new_id)
    created_at: UtcDateTime = Field(default_factory=utcnow)


class CourseUpdate(CamelModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    semester: Optional[str] = None


class LectureCreate(CamelModel):
    course_id: str
    title: str
    description: Optional[str] = None
    unit: Optional[str] = None
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    summary: Optional[str] = None
    key_points: Optional[List[str]] = None


class LectureRecord(LectureCreate):
    id: str = Field(default_factory=new_id)
    created_at: UtcDateTime = Field(default_factory=utcnow)


class LectureUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    summary: Optional[str] = None
    key_points: Optional[List[str]] = None


class EnrollmentCreate(CamelModel):
    course_id: str
    student_id: str


class EnrollmentRecord(EnrollmentCreate):
    id: str = Field(default_factory=new_id)
    enrolled_at: UtcDateTime = Field(default_factory=utcnow)


class EnrollRequest(CamelModel):
    student_email: str
