"""In-memory storage used when no database is configured, and in tests."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.enums import UserRole
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


class MemStorage(Storage):
    """Dict-backed storage. Records are copied on the way in and out."""

    backend_name = "memory"

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.courses: Dict[str, CourseRecord] = {}
        self.lectures: Dict[str, LectureRecord] = {}
        self.questions: Dict[str, QuestionRecord] = {}
        self.quizzes: Dict[str, QuizRecord] = {}
        self.quiz_questions: Dict[str, QuizQuestionRecord] = {}
        self.assignments: Dict[str, AssignmentRecord] = {}
        self.enrollments: Dict[str, EnrollmentRecord] = {}
        self.quiz_submissions: Dict[str, QuizSubmissionRecord] = {}
        self.assignment_submissions: Dict[str, AssignmentSubmissionRecord] = {}
        self.proctoring_violations: Dict[str, ProctoringViolationRecord] = {}
        self.public_quiz_submissions: Dict[str, PublicQuizSubmissionRecord] = {}
        self.chat_commands: Dict[str, ChatCommandRecord] = {}
        self.password_reset_tokens: Dict[str, PasswordResetTokenRecord] = {}

    # Helpers
    @staticmethod
    def _copy(record):
        return record.model_copy(deep=True) if record is not None else None

    def _list(self, table: Dict[str, Any], **filters) -> list:
        rows = table.values()
        for field, value in filters.items():
            if value is not None:
                rows = [row for row in rows if getattr(row, field) == value]
        return [self._copy(row) for row in rows]

    def _insert(self, table: Dict[str, Any], record):
        table[record.id] = self._copy(record)
        return self._copy(record)

    def _update(self, table: Dict[str, Any], key: str, changes: Dict[str, Any]):
        existing = table.get(key)
        if existing is None:
            return None
        updated = merge_record(existing, changes)
        table[key] = updated
        return self._copy(updated)

    # Users
    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self._copy(self.users.get(user_id))

    def get_users(self, role: Optional[UserRole] = None) -> List[UserRecord]:
        return self._list(self.users, role=role)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return next((self._copy(u) for u in self.users.values() if u.username == username), None)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return next((self._copy(u) for u in self.users.values() if u.email == email), None)

    def create_user(self, payload: UserCreate) -> UserRecord:
        return self._insert(self.users, build_record(UserRecord, payload))

    def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[UserRecord]:
        return self._update(self.users, user_id, changes)

    def delete_user(self, user_id: str) -> None:
        self.users.pop(user_id, None)

    # Courses
    def get_courses(self, instructor_id: Optional[str] = None) -> List[CourseRecord]:
        return self._list(self.courses, instructor_id=instructor_id)

    def get_course(self, course_id: str) -> Optional[CourseRecord]:
        return self._copy(self.courses.get(course_id))

    def create_course(self, payload: CourseCreate) -> CourseRecord:
        return self._insert(self.courses, build_record(CourseRecord, payload))

    def update_course(self, course_id: str, changes: Dict[str, Any]) -> Optional[CourseRecord]:
        return self._update(self.courses, course_id, changes)

    def delete_course(self, course_id: str) -> None:
        self.courses.pop(course_id, None)

    # Lectures
    def get_lectures(self, course_id: Optional[str] = None) -> List[LectureRecord]:
        return self._list(self.lectures, course_id=course_id)

    def get_lecture(self, lecture_id: str) -> Optional[LectureRecord]:
        return self._copy(self.lectures.get(lecture_id))

    def create_lecture(self, payload: LectureCreate) -> LectureRecord:
        return self._insert(self.lectures, build_record(LectureRecord, payload))

    def update_lecture(self, lecture_id: str, changes: Dict[str, Any]) -> Optional[LectureRecord]:
        return self._update(self.lectures, lecture_id, changes)

    def delete_lecture(self, lecture_id: str) -> None:
        self.lectures.pop(lecture_id, None)

    # Questions
    def get_questions(self, course_id: Optional[str] = None, lecture_id: Optional[str] = None) -> List[QuestionRecord]:
        return self._list(self.questions, course_id=course_id, lecture_id=lecture_id)

    def get_question(self, question_id: str) -> Optional[QuestionRecord]:
        return self._copy(self.questions.get(question_id))

    def create_question(self, payload: QuestionCreate) -> QuestionRecord:
        return self._insert(self.questions, build_record(QuestionRecord, payload))

    def update_question(self, question_id: str, changes: Dict[str, Any]) -> Optional[QuestionRecord]:
        return self._update(self.questions, question_id, changes)

    def delete_question(self, question_id: str) -> None:
        self.questions.pop(question_id, None)

    # Quizzes
    def get_quizzes(self, course_id: Optional[str] = None) -> List[QuizRecord]:
        return self._list(self.quizzes, course_id=course_id)

    def get_quiz(self, quiz_id: str) -> Optional[QuizRecord]:
        return self._copy(self.quizzes.get(quiz_id))

    def create_quiz(self, payload: QuizCreate) -> QuizRecord:
        return self._insert(self.quizzes, build_record(QuizRecord, payload))

    def update_quiz(self, quiz_id: str, changes: Dict[str, Any]) -> Optional[QuizRecord]:
        return self._update(self.quizzes, quiz_id, changes)

    def delete_quiz(self, quiz_id: str) -> None:
        self.quizzes.pop(quiz_id, None)

    # Quiz questions
    def get_quiz_questions(self, quiz_id: str) -> List[QuizQuestionDetail]:
        rows = sorted(
            (qq for qq in self.quiz_questions.values() if qq.quiz_id == quiz_id),
            key=lambda qq: qq.order_index,
        )
        details = []
        for row in rows:
            question = self.questions.get(row.question_id)
            if question is None:
                continue
            details.append(QuizQuestionDetail(**row.model_dump(), question=self._copy(question)))
        return details

    def add_quiz_question(self, payload: QuizQuestionCreate) -> QuizQuestionRecord:
        return self._insert(self.quiz_questions, build_record(QuizQuestionRecord, payload))

    def remove_quiz_question(self, quiz_id: str, question_id: str) -> None:
        for key, row in list(self.quiz_questions.items()):
            if row.quiz_id == quiz_id and row.question_id == question_id:
                del self.quiz_questions[key]

    # Assignments
    def get_assignments(self, course_id: Optional[str] = None) -> List[AssignmentRecord]:
        return self._list(self.assignments, course_id=course_id)

    def get_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        return self._copy(self.assignments.get(assignment_id))

    def create_assignment(self, payload: AssignmentCreate) -> AssignmentRecord:
        return self._insert(self.assignments, build_record(AssignmentRecord, payload))

    def update_assignment(self, assignment_id: str, changes: Dict[str, Any]) -> Optional[AssignmentRecord]:
        return self._update(self.assignments, assignment_id, changes)

    def delete_assignment(self, assignment_id: str) -> None:
        self.assignments.pop(assignment_id, None)

    # Enrollments
    def get_enrollments(self, course_id: Optional[str] = None, student_id: Optional[str] = None) -> List[EnrollmentRecord]:
        return self._list(self.enrollments, course_id=course_id, student_id=student_id)

    def create_enrollment(self, payload: EnrollmentCreate) -> EnrollmentRecord:
        return self._insert(self.enrollments, build_record(EnrollmentRecord, payload))

    def delete_enrollment(self, course_id: str, student_id: str) -> None:
        for key, row in list(self.enrollments.items()):
            if row.course_id == course_id and row.student_id == student_id:
                del self.enrollments[key]

    # Quiz submissions
    def get_quiz_submissions(self, quiz_id: Optional[str] = None, student_id: Optional[str] = None) -> List[QuizSubmissionRecord]:
        return self._list(self.quiz_submissions, quiz_id=quiz_id, student_id=student_id)

    def get_quiz_submission(self, submission_id: str) -> Optional[QuizSubmissionRecord]:
        return self._copy(self.quiz_submissions.get(submission_id))

    def create_quiz_submission(self, payload: QuizSubmissionCreate) -> QuizSubmissionRecord:
        return self._insert(self.quiz_submissions, build_record(QuizSubmissionRecord, payload))

    def update_quiz_submission(self, submission_id: str, changes: Dict[str, Any]) -> Optional[QuizSubmissionRecord]:
        return self._update(self.quiz_submissions, submission_id, changes)

    # Assignment submissions
    def get_assignment_submissions(
        self, assignment_id: Optional[str] = None, student_id: Optional[str] = None
    ) -> List[AssignmentSubmissionRecord]:
        submissions = self._list(self.assignment_submissions, assignment_id=assignment_id, student_id=student_id)
        # Unsubmitted drafts first, then by submission time
        return sorted(submissions, key=lambda s: (s.submitted_at is not None, s.submitted_at or datetime.min))

    def get_assignment_submission(self, submission_id: str) -> Optional[AssignmentSubmissionRecord]:
        return self._copy(self.assignment_submissions.get(submission_id))

    def create_assignment_submission(self, payload: AssignmentSubmissionCreate) -> AssignmentSubmissionRecord:
        return self._insert(self.assignment_submissions, build_record(AssignmentSubmissionRecord, payload))

    def update_assignment_submission(self, submission_id: str, changes: Dict[str, Any]) -> Optional[AssignmentSubmissionRecord]:
        return self._update(self.assignment_submissions, submission_id, changes)

    # Proctoring violations
    def get_proctoring_violations(self, submission_id: Optional[str] = None) -> List[ProctoringViolationRecord]:
        return self._list(self.proctoring_violations, submission_id=submission_id)

    def create_proctoring_violation(self, payload: ProctoringViolationCreate) -> ProctoringViolationRecord:
        return self._insert(self.proctoring_violations, build_record(ProctoringViolationRecord, payload))

    def update_proctoring_violation(self, violation_id: str, changes: Dict[str, Any]) -> Optional[ProctoringViolationRecord]:
        return self._update(self.proctoring_violations, violation_id, changes)

    # Public quiz submissions
    def get_public_quiz_submissions(self, quiz_id: str) -> List[PublicQuizSubmissionRecord]:
        return self._list(self.public_quiz_submissions, quiz_id=quiz_id)

    def get_public_quiz_submission(self, submission_id: str) -> Optional[PublicQuizSubmissionRecord]:
        return self._copy(self.public_quiz_submissions.get(submission_id))

    def create_public_quiz_submission(self, payload: PublicQuizSubmissionCreate) -> PublicQuizSubmissionRecord:
        return self._insert(self.public_quiz_submissions, build_record(PublicQuizSubmissionRecord, payload))

    def update_public_quiz_submission(self, submission_id: str, changes: Dict[str, Any]) -> Optional[PublicQuizSubmissionRecord]:
        return self._update(self.public_quiz_submissions, submission_id, changes)

    # Public links
    def get_quiz_by_public_token(self, token: str) -> Optional[QuizRecord]:
        if not token:
            return None
        for quiz in self.quizzes.values():
            if quiz.public_access_token == token and quiz.public_link_enabled:
                return self._copy(quiz)
        return None

    # Chat commands
    def get_chat_commands(self, user_id: str) -> List[ChatCommandRecord]:
        # Reversed first so ties on created_at still come out newest first
        commands = reversed(self._list(self.chat_commands, user_id=user_id))
        return sorted(commands, key=lambda c: c.created_at, reverse=True)

    def get_chat_command(self, command_id: str) -> Optional[ChatCommandRecord]:
        return self._copy(self.chat_commands.get(command_id))

    def create_chat_command(self, payload: ChatCommandCreate) -> ChatCommandRecord:
        return self._insert(self.chat_commands, build_record(ChatCommandRecord, payload))

    def update_chat_command(self, command_id: str, changes: Dict[str, Any]) -> Optional[ChatCommandRecord]:
        return self._update(self.chat_commands, command_id, changes)

    # Password reset tokens
    def create_password_reset_token(self, user_id: str, token: str, expires_at: datetime) -> PasswordResetTokenRecord:
        record = PasswordResetTokenRecord(user_id=user_id, token=token, expires_at=expires_at)
        self.password_reset_tokens[token] = record
        logger.debug(f"Issued password reset token for user {user_id}")
        return self._copy(record)

    def get_password_reset_token(self, token: str) -> Optional[PasswordResetTokenRecord]:
        return self._copy(self.password_reset_tokens.get(token))

    def mark_password_reset_token_used(self, token: str) -> None:
        record = self.password_reset_tokens.get(token)
        if record is not None:
            self.password_reset_tokens[token] = record.model_copy(update={"used": True})
