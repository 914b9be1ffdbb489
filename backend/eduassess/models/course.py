"""Course, Lecture and Enrollment models."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.sql import func
import uuid

from ..database import Base


class Course(Base):
    """Course model; every course belongs to exactly one instructor."""
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False)
    description = Column(Text)
    semester = Column(String(100), nullable=False)
    instructor_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Course(id={self.id}, code='{self.code}')>"


class Lecture(Base):
    """Lecture material attached to a course."""
    __tablename__ = "lectures"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    unit = Column(String(255))
    file_url = Column(String(500))
    file_type = Column(String(100))
    summary = Column(Text)
    key_points = Column(JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Lecture(id={self.id}, title='{self.title}')>"

    @property
    def has_summary(self) -> bool:
        return bool(self.summary)


class Enrollment(Base):
    """Many-to-many join between students and courses."""
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("course_id", "student_id", name="uq_enrollment_course_student"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    enrolled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Enrollment(course_id={self.course_id}, student_id={self.student_id})>"
