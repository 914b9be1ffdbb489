"""
Repository contract shared by the in-memory and SQL backends.

Every "get many" returns a list (unfiltered when no filter is given), every
"get one" returns the record or None, "create" takes an insert payload and
returns the full record with defaults applied, "update" merges a partial
mapping and returns None when the target does not exist, and "delete" is
idempotent.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import InvalidStatusTransition, ValidationFailed
from ..models.enums import PublicLinkPermission, SubmissionStatus, UserRole
from ..schemas import (
    UserCreate, UserRecord, PasswordResetTokenRecord,
    CourseCreate, CourseRecord, LectureCreate, LectureRecord,
    EnrollmentCreate, EnrollmentRecord,
    QuestionCreate, QuestionRecord, QuizCreate, QuizRecord,
    QuizQuestionCreate, QuizQuestionRecord, QuizQuestionDetail,
    AssignmentCreate, AssignmentRecord,
    QuizSubmissionCreate, QuizSubmissionRecord,
    AssignmentSubmissionCreate, AssignmentSubmissionRecord,
    ProctoringViolationCreate, ProctoringViolationRecord,
    PublicQuizSubmissionCreate, PublicQuizSubmissionRecord,
    ChatCommandCreate, ChatCommandRecord,
)

RecordT = TypeVar("RecordT", bound=BaseModel)


def build_record(record_cls: Type[RecordT], payload: BaseModel) -> RecordT:
    """Turn an insert payload into a stored record, filling ids, timestamps and defaults."""
    return record_cls.model_validate(payload.model_dump())


def merge_record(record: RecordT, changes: Dict[str, Any]) -> RecordT:
    """Merge a partial update over a record.

    The id never changes. A submission status may stay put or move forward
    through in_progress -> submitted -> graded, never backward.
    """
    changes = {key: value for key, value in changes.items() if key != "id"}
    current_status = getattr(record, "status", None)
    if isinstance(current_status, SubmissionStatus) and changes.get("status") is not None:
        try:
            requested = SubmissionStatus(changes["status"])
        except ValueError as e:
            raise ValidationFailed(f"Unknown submission status: {changes['status']}") from e
        if requested.rank < current_status.rank:
            raise InvalidStatusTransition(current_status, requested)

    merged = record.model_dump()
    merged.update(changes)
    try:
        return type(record).model_validate(merged)
    except ValidationError as e:
        raise ValidationFailed(str(e)) from e


def new_public_token() -> str:
    """16 hex characters taken from a random UUID."""
    return uuid.uuid4().hex[:16]


class Storage(ABC):
    """Abstract repository for every EduAssess entity."""

    backend_name = "abstract"

    # Users
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    def get_users(self, role: Optional[UserRole] = None) -> List[UserRecord]:
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    def create_user(self, payload: UserCreate) -> UserRecord:
        pass

    @abstractmethod
    def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[UserRecord]:
        pass

    @abstractmethod
    def delete_user(self, user_id: str) -> None:
        pass

    # Courses
    @abstractmethod
    def get_courses(self, instructor_id: Optional[str] = None) -> List[CourseRecord]:
        pass

    @abstractmethod
    def get_course(self, course_id: str) -> Optional[CourseRecord]:
        pass

    @abstractmethod
    def create_course(self, payload: CourseCreate) -> CourseRecord:
        pass

    @abstractmethod
    def update_course(self, course_id: str, changes: Dict[str, Any]) -> Optional[CourseRecord]:
        pass

    @abstractmethod
    def delete_course(self, course_id: str) -> None:
        pass

    # Lectures
    @abstractmethod
    def get_lectures(self, course_id: Optional[str] = None) -> List[LectureRecord]:
        pass

    @abstractmethod
    def get_lecture(self, lecture_id: str) -> Optional[LectureRecord]:
        pass

    @abstractmethod
    def create_lecture(self, payload: LectureCreate) -> LectureRecord:
        pass

    @abstractmethod
    def update_lecture(self, lecture_id: str, changes: Dict[str, Any]) -> Optional[LectureRecord]:
        pass

    @abstractmethod
    def delete_lecture(self, lecture_id: str) -> None:
        pass

    # Questions
    @abstractmethod
    def get_questions(self, course_id: Optional[str] = None, lecture_id: Optional[str] = None) -> List[QuestionRecord]:
        pass

    @abstractmethod
    def get_question(self, question_id: str) -> Optional[QuestionRecord]:
        pass

    @abstractmethod
    def create_question(self, payload: QuestionCreate) -> QuestionRecord:
        pass

    def create_questions(self, payloads: List[QuestionCreate]) -> List[QuestionRecord]:
        return [self.create_question(payload) for payload in payloads]

    @abstractmethod
    def update_question(self, question_id: str, changes: Dict[str, Any]) -> Optional[QuestionRecord]:
        pass

    @abstractmethod
    def delete_question(self, question_id: str) -> None:
        pass

    # Quizzes
    @abstractmethod
    def get_quizzes(self, course_id: Optional[str] = None) -> List[QuizRecord]:
        pass

    @abstractmethod
    def get_quiz(self, quiz_id: str) -> Optional[QuizRecord]:
        pass

    @abstractmethod
    def create_quiz(self, payload: QuizCreate) -> QuizRecord:
        pass

    @abstractmethod
    def update_quiz(self, quiz_id: str, changes: Dict[str, Any]) -> Optional[QuizRecord]:
        pass

    @abstractmethod
    def delete_quiz(self, quiz_id: str) -> None:
        pass

    # Quiz questions
    @abstractmethod
    def get_quiz_questions(self, quiz_id: str) -> List[QuizQuestionDetail]:
        """Join rows for a quiz ordered by order_index, each with its question."""
        pass

    @abstractmethod
    def add_quiz_question(self, payload: QuizQuestionCreate) -> QuizQuestionRecord:
        pass

    @abstractmethod
    def remove_quiz_question(self, quiz_id: str, question_id: str) -> None:
        pass

    # Assignments
    @abstractmethod
    def get_assignments(self, course_id: Optional[str] = None) -> List[AssignmentRecord]:
        pass

    @abstractmethod
    def get_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        pass

    @abstractmethod
    def create_assignment(self, payload: AssignmentCreate) -> AssignmentRecord:
        pass

    @abstractmethod
    def update_assignment(self, assignment_id: str, changes: Dict[str, Any]) -> Optional[AssignmentRecord]:
        pass

    @abstractmethod
    def delete_assignment(self, assignment_id: str) -> None:
        pass

    # Enrollments
    @abstractmethod
    def get_enrollments(self, course_id: Optional[str] = None, student_id: Optional[str] = None) -> List[EnrollmentRecord]:
        pass

    @abstractmethod
    def create_enrollment(self, payload: EnrollmentCreate) -> EnrollmentRecord:
        pass

    @abstractmethod
    def delete_enrollment(self, course_id: str, student_id: str) -> None:
        pass

    # Quiz submissions
    @abstractmethod
    def get_quiz_submissions(self, quiz_id: Optional[str] = None, student_id: Optional[str] = None) -> List[QuizSubmissionRecord]:
        pass

    @abstractmethod
    def get_quiz_submission(self, submission_id: str) -> Optional[QuizSubmissionRecord]:
        pass

    @abstractmethod
    def create_quiz_submission(self, payload: QuizSubmissionCreate) -> QuizSubmissionRecord:
        pass

    @abstractmethod
    def update_quiz_submission(self, submission_id: str, changes: Dict[str, Any]) -> Optional[QuizSubmissionRecord]:
        pass

    # Assignment submissions
    @abstractmethod
    def get_assignment_submissions(
        self, assignment_id: Optional[str] = None, student_id: Optional[str] = None
    ) -> List[AssignmentSubmissionRecord]:
        pass

    @abstractmethod
    def get_assignment_submission(self, submission_id: str) -> Optional[AssignmentSubmissionRecord]:
        pass

    @abstractmethod
    def create_assignment_submission(self, payload: AssignmentSubmissionCreate) -> AssignmentSubmissionRecord:
        pass

    @abstractmethod
    def update_assignment_submission(self, submission_id: str, changes: Dict[str, Any]) -> Optional[AssignmentSubmissionRecord]:
        pass

    # Proctoring violations
    @abstractmethod
    def get_proctoring_violations(self, submission_id: Optional[str] = None) -> List[ProctoringViolationRecord]:
        pass

    @abstractmethod
    def create_proctoring_violation(self, payload: ProctoringViolationCreate) -> ProctoringViolationRecord:
        pass

    @abstractmethod
    def update_proctoring_violation(self, violation_id: str, changes: Dict[str, Any]) -> Optional[ProctoringViolationRecord]:
        pass

    # Public quiz submissions
    @abstractmethod
    def get_public_quiz_submissions(self, quiz_id: str) -> List[PublicQuizSubmissionRecord]:
        pass

    @abstractmethod
    def get_public_quiz_submission(self, submission_id: str) -> Optional[PublicQuizSubmissionRecord]:
        pass

    @abstractmethod
    def create_public_quiz_submission(self, payload: PublicQuizSubmissionCreate) -> PublicQuizSubmissionRecord:
        pass

    @abstractmethod
    def update_public_quiz_submission(self, submission_id: str, changes: Dict[str, Any]) -> Optional[PublicQuizSubmissionRecord]:
        pass

    # Public links
    @abstractmethod
    def get_quiz_by_public_token(self, token: str) -> Optional[QuizRecord]:
        """Quiz whose token matches and whose link is enabled, else None."""
        pass

    def generate_quiz_public_link(
        self, quiz_id: str, permission: PublicLinkPermission, required_fields: List[str]
    ) -> Optional[QuizRecord]:
        """Issue a fresh token for a quiz, replacing any previous one."""
        return self.update_quiz(quiz_id, {
            "public_access_token": new_public_token(),
            "public_link_permission": permission,
            "public_link_enabled": True,
            "required_identification_fields": list(required_fields),
        })

    # Chat commands
    @abstractmethod
    def get_chat_commands(self, user_id: str) -> List[ChatCommandRecord]:
        """Commands for a user, newest first."""
        pass

    @abstractmethod
    def get_chat_command(self, command_id: str) -> Optional[ChatCommandRecord]:
        pass

    @abstractmethod
    def create_chat_command(self, payload: ChatCommandCreate) -> ChatCommandRecord:
        pass

    @abstractmethod
    def update_chat_command(self, command_id: str, changes: Dict[str, Any]) -> Optional[ChatCommandRecord]:
        pass

    # Password reset tokens
    @abstractmethod
    def create_password_reset_token(self, user_id: str, token: str, expires_at: datetime) -> PasswordResetTokenRecord:
        pass

    @abstractmethod
    def get_password_reset_token(self, token: str) -> Optional[PasswordResetTokenRecord]:
        pass

    @abstractmethod
    def mark_password_reset_token_used(self, token: str) -> None:
        pass
