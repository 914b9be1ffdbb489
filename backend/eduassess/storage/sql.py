"""SQLAlchemy-backed storage. Each call runs in its own session."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from ..database import SessionLocal, session_scope
from ..models import (
    User, PasswordResetToken, Course, Lecture, Enrollment,
    Question, Quiz, QuizQuestion, Assignment,
    QuizSubmission, AssignmentSubmission, ProctoringViolation, PublicQuizSubmission,
    ChatCommand, UserRole,
)
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
from .base import Storage, build_record, merge_record

logger = logging.getLogger(__name__)


def row_to_record(record_cls, row):
    """Build a pydantic record from an ORM row's column values."""
    if row is None:
        return None
    return record_cls.model_validate({column.name: getattr(row, column.name) for column in row.__table__.columns})


class SqlStorage(Storage):
    """Storage on top of the SQLAlchemy models."""

    backend_name = "sql"

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def _scope(self):
        return session_scope(self.session_factory)

    # Generic helpers
    def _select(self, model_cls, record_cls, order_by=None, **filters) -> list:
        with self._scope() as db:
            query = db.query(model_cls)
            for field, value in filters.items():
                if value is not None:
                    query = query.filter(getattr(model_cls, field) == value)
            if order_by is not None:
                query = query.order_by(order_by)
            return [row_to_record(record_cls, row) for row in query.all()]

    def _get(self, model_cls, record_cls, key: str):
        with self._scope() as db:
            return row_to_record(record_cls, db.get(model_cls, key))

    def _insert(self, model_cls, record):
        with self._scope() as db:
            db.add(model_cls(**record.model_dump()))
        return record

    def _update(self, model_cls, record_cls: Type, key: str, changes: Dict[str, Any]):
        with self._scope() as db:
            row = db.get(model_cls, key)
            if row is None:
                return None
            updated = merge_record(row_to_record(record_cls, row), changes)
            for field, value in updated.model_dump().items():
                setattr(row, field, value)
            return updated

    def _delete(self, model_cls, key: str) -> None:
        with self._scope() as db:
            db.query(model_cls).filter(model_cls.id == key).delete(synchronize_session=False)

    # Users
    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self._get(User, UserRecord, user_id)

    def get_users(self, role: Optional[UserRole] = None) -> List[UserRecord]:
        return self._select(User, UserRecord, order_by=User.created_at, role=role)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._scope() as db:
            return row_to_record(UserRecord, db.query(User).filter(User.username == username).first())

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._scope() as db:
            return row_to_record(UserRecord, db.query(User).filter(User.email == email).first())

    def create_user(self, payload: UserCreate) -> UserRecord:
        return self._insert(User, build_record(UserRecord, payload))

    def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[UserRecord]:
        return self._update(User, UserRecord, user_id, changes)

    def delete_user(self, user_id: str) -> None:
        self._delete(User, user_id)

    # Courses
    def get_courses(self, instructor_id: Optional[str] = None) -> List[CourseRecord]:
        return self._select(Course, CourseRecord, order_by=Course.created_at, instructor_id=instructor_id)

    def get_course(self, course_id: str) -> Optional[CourseRecord]:
        return self._get(Course, CourseRecord, course_id)

    def create_course(self, payload: CourseCreate) -> CourseRecord:
        return self._insert(Course, build_record(CourseRecord, payload))

    def update_course(self, course_id: str, changes: Dict[str, Any]) -> Optional[CourseRecord]:
        return self._update(Course, CourseRecord, course_id, changes)

    def delete_course(self, course_id: str) -> None:
        self._delete(Course, course_id)

    # Lectures
    def get_lectures(self, course_id: Optional[str] = None) -> List[LectureRecord]:
        return self._select(Lecture, LectureRecord, order_by=Lecture.created_at, course_id=course_id)

    def get_lecture(self, lecture_id: str) -> Optional[LectureRecord]:
        return self._get(Lecture, LectureRecord, lecture_id)

    def create_lecture(self, payload: LectureCreate) -> LectureRecord:
        return self._insert(Lecture, build_record(LectureRecord, payload))

    def update_lecture(self, lecture_id: str, changes: Dict[str, Any]) -> Optional[LectureRecord]:
        return self._update(Lecture, LectureRecord, lecture_id, changes)

    def delete_lecture(self, lecture_id: str) -> None:
        self._delete(Lecture, lecture_id)

    # Questions
    def get_questions(self, course_id: Optional[str] = None, lecture_id: Optional[str] = None) -> List[QuestionRecord]:
        return self._select(Question, QuestionRecord, order_by=Question.created_at, course_id=course_id, lecture_id=lecture_id)

    def get_question(self, question_id: str) -> Optional[QuestionRecord]:
        return self._get(Question, QuestionRecord, question_id)

    def create_question(self, payload: QuestionCreate) -> QuestionRecord:
        return self._insert(Question, build_record(QuestionRecord, payload))

    def create_questions(self, payloads: List[QuestionCreate]) -> List[QuestionRecord]:
        records = [build_record(QuestionRecord, payload) for payload in payloads]
        with self._scope() as db:
            db.add_all([Question(**record.model_dump()) for record in records])
        return records

    def update_question(self, question_id: str, changes: Dict[str, Any]) -> Optional[QuestionRecord]:
        return self._update(Question, QuestionRecord, question_id, changes)

    def delete_question(self, question_id: str) -> None:
        self._delete(Question, question_id)

    # Quizzes
    def get_quizzes(self, course_id: Optional[str] = None) -> List[QuizRecord]:
        return self._select(Quiz, QuizRecord, order_by=Quiz.created_at, course_id=course_id)

    def get_quiz(self, quiz_id: str) -> Optional[QuizRecord]:
        return self._get(Quiz, QuizRecord, quiz_id)

    def create_quiz(self, payload: QuizCreate) -> QuizRecord:
        return self._insert(Quiz, build_record(QuizRecord, payload))

    def update_quiz(self, quiz_id: str, changes: Dict[str, Any]) -> Optional[QuizRecord]:
        return self._update(Quiz, QuizRecord, quiz_id, changes)

    def delete_quiz(self, quiz_id: str) -> None:
        self._delete(Quiz, quiz_id)

    # Quiz questions
    def get_quiz_questions(self, quiz_id: str) -> List[QuizQuestionDetail]:
        with self._scope() as db:
            rows = (
                db.query(QuizQuestion, Question)
                .join(Question, QuizQuestion.question_id == Question.id)
                .filter(QuizQuestion.quiz_id == quiz_id)
                .order_by(QuizQuestion.order_index)
                .all()
            )
            return [
                QuizQuestionDetail(
                    **row_to_record(QuizQuestionRecord, link).model_dump(),
                    question=row_to_record(QuestionRecord, question),
                )
                for link, question in rows
            ]

    def add_quiz_question(self, payload: QuizQuestionCreate) -> QuizQuestionRecord:
        return self._insert(QuizQuestion, build_record(QuizQuestionRecord, payload))

    def remove_quiz_question(self, quiz_id: str, question_id: str) -> None:
        with self._scope() as db:
            db.query(QuizQuestion).filter(
                QuizQuestion.quiz_id == quiz_id,
                QuizQuestion.question_id == question_id,
            ).delete(synchronize_session=False)

    # Assignments
    def get_assignments(self, course_id: Optional[str] = None) -> List[AssignmentRecord]:
        return self._select(Assignment, AssignmentRecord, order_by=Assignment.created_at, course_id=course_id)

    def get_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        return self._get(Assignment, AssignmentRecord, assignment_id)

    def create_assignment(self, payload: AssignmentCreate) -> AssignmentRecord:
        return self._insert(Assignment, build_record(AssignmentRecord, payload))

    def update_assignment(self, assignment_id: str, changes: Dict[str, Any]) -> Optional[AssignmentRecord]:
        return self._update(Assignment, AssignmentRecord, assignment_id, changes)

    def delete_assignment(self, assignment_id: str) -> None:
        self._delete(Assignment, assignment_id)

    # Enrollments
    def get_enrollments(self, course_id: Optional[str] = None, student_id: Optional[str] = None) -> List[EnrollmentRecord]:
        return self._select(
            Enrollment, EnrollmentRecord, order_by=Enrollment.enrolled_at,
            course_id=course_id, student_id=student_id,
        )

    def create_enrollment(self, payload: EnrollmentCreate) -> EnrollmentRecord:
        return self._insert(Enrollment, build_record(EnrollmentRecord, payload))

    def delete_enrollment(self, course_id: str, student_id: str) -> None:
        with self._scope() as db:
            db.query(Enrollment).filter(
                Enrollment.course_id == course_id,
                Enrollment.student_id == student_id,
            ).delete(synchronize_session=False)

    # Quiz submissions
    def get_quiz_submissions(self, quiz_id: Optional[str] = None, student_id: Optional[str] = None) -> List[QuizSubmissionRecord]:
        return self._select(
            QuizSubmission, QuizSubmissionRecord, order_by=QuizSubmission.started_at,
            quiz_id=quiz_id, student_id=student_id,
        )

    def get_quiz_submission(self, submission_id: str) -> Optional[QuizSubmissionRecord]:
        return self._get(QuizSubmission, QuizSubmissionRecord, submission_id)

    def create_quiz_submission(self, payload: QuizSubmissionCreate) -> QuizSubmissionRecord:
        return self._insert(QuizSubmission, build_record(QuizSubmissionRecord, payload))

    def update_quiz_submission(self, submission_id: str, changes: Dict[str, Any]) -> Optional[QuizSubmissionRecord]:
        return self._update(QuizSubmission, QuizSubmissionRecord, submission_id, changes)

    # Assignment submissions
    def get_assignment_submissions(
        self, assignment_id: Optional[str] = None, student_id: Optional[str] = None
    ) -> List[AssignmentSubmissionRecord]:
        return self._select(
            AssignmentSubmission, AssignmentSubmissionRecord,
            order_by=AssignmentSubmission.submitted_at.asc().nullsfirst(),
            assignment_id=assignment_id, student_id=student_id,
        )

    def get_assignment_submission(self, submission_id: str) -> Optional[AssignmentSubmissionRecord]:
        return self._get(AssignmentSubmission, AssignmentSubmissionRecord, submission_id)

    def create_assignment_submission(self, payload: AssignmentSubmissionCreate) -> AssignmentSubmissionRecord:
        return self._insert(AssignmentSubmission, build_record(AssignmentSubmissionRecord, payload))

    def update_assignment_submission(self, submission_id: str, changes: Dict[str, Any]) -> Optional[AssignmentSubmissionRecord]:
        return self._update(AssignmentSubmission, AssignmentSubmissionRecord, submission_id, changes)

    # Proctoring violations
    def get_proctoring_violations(self, submission_id: Optional[str] = None) -> List[ProctoringViolationRecord]:
        return self._select(
            ProctoringViolation, ProctoringViolationRecord,
            order_by=ProctoringViolation.timestamp, submission_id=submission_id,
        )

    def create_proctoring_violation(self, payload: ProctoringViolationCreate) -> ProctoringViolationRecord:
        return self._insert(ProctoringViolation, build_record(ProctoringViolationRecord, payload))

    def update_proctoring_violation(self, violation_id: str, changes: Dict[str, Any]) -> Optional[ProctoringViolationRecord]:
        return self._update(ProctoringViolation, ProctoringViolationRecord, violation_id, changes)

    # Public quiz submissions
    def get_public_quiz_submissions(self, quiz_id: str) -> List[PublicQuizSubmissionRecord]:
        return self._select(
            PublicQuizSubmission, PublicQuizSubmissionRecord,
            order_by=PublicQuizSubmission.started_at, quiz_id=quiz_id,
        )

    def get_public_quiz_submission(self, submission_id: str) -> Optional[PublicQuizSubmissionRecord]:
        return self._get(PublicQuizSubmission, PublicQuizSubmissionRecord, submission_id)

    def create_public_quiz_submission(self, payload: PublicQuizSubmissionCreate) -> PublicQuizSubmissionRecord:
        return self._insert(PublicQuizSubmission, build_record(PublicQuizSubmissionRecord, payload))

    def update_public_quiz_submission(self, submission_id: str, changes: Dict[str, Any]) -> Optional[PublicQuizSubmissionRecord]:
        return self._update(PublicQuizSubmission, PublicQuizSubmissionRecord, submission_id, changes)

    # Public links
    def get_quiz_by_public_token(self, token: str) -> Optional[QuizRecord]:
        if not token:
            return None
        with self._scope() as db:
            row = db.query(Quiz).filter(
                Quiz.public_access_token == token,
                Quiz.public_link_enabled.is_(True),
            ).first()
            return row_to_record(QuizRecord, row)

    # Chat commands
    def get_chat_commands(self, user_id: str) -> List[ChatCommandRecord]:
        return self._select(ChatCommand, ChatCommandRecord, order_by=ChatCommand.created_at.desc(), user_id=user_id)

    def get_chat_command(self, command_id: str) -> Optional[ChatCommandRecord]:
        return self._get(ChatCommand, ChatCommandRecord, command_id)

    def create_chat_command(self, payload: ChatCommandCreate) -> ChatCommandRecord:
        return self._insert(ChatCommand, build_record(ChatCommandRecord, payload))

    def update_chat_command(self, command_id: str, changes: Dict[str, Any]) -> Optional[ChatCommandRecord]:
        return self._update(ChatCommand, ChatCommandRecord, command_id, changes)

    # Password reset tokens
    def create_password_reset_token(self, user_id: str, token: str, expires_at: datetime) -> PasswordResetTokenRecord:
        record = PasswordResetTokenRecord(user_id=user_id, token=token, expires_at=expires_at)
        self._insert(PasswordResetToken, record)
        logger.debug(f"Issued password reset token for user {user_id}")
        return record

    def get_password_reset_token(self, token: str) -> Optional[PasswordResetTokenRecord]:
        with self._scope() as db:
            row = db.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()
            return row_to_record(PasswordResetTokenRecord, row)

    def mark_password_reset_token_used(self, token: str) -> None:
        with self._scope() as db:
            db.query(PasswordResetToken).filter(PasswordResetToken.token == token).update(
                {PasswordResetToken.used: True}, synchronize_session=False
            )
