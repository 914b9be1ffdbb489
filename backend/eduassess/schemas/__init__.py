"""Pydantic records, insert payloads and partial updates for every entity."""

from .base import CamelModel, UtcDateTime, utcnow, new_id
from .users import UserCreate, UserRecord, UserPublic, PasswordResetTokenRecord
from .courses import (
    CourseCreate, CourseRequest, CourseRecord, CourseUpdate,
    LectureCreate, LectureRecord, LectureUpdate,
    EnrollmentCreate, EnrollmentRecord, EnrollRequest,
)
from .assessments import (
    DEFAULT_IDENTIFICATION_FIELDS, RubricCriterion,
    QuestionCreate, QuestionRecord, QuestionUpdate,
    QuizCreate, QuizRecord, QuizUpdate, QuizWithQuestions,
    QuizQuestionCreate, QuizQuestionRecord, QuizQuestionDetail, AddQuizQuestionRequest,
    AssignmentCreate, AssignmentRecord, AssignmentUpdate,
    PublicLinkRequest,
)
from .submissions import (
    AnswerRecord, RubricScore,
    QuizSubmissionCreate, QuizSubmissionRecord,
    AssignmentSubmissionCreate, AssignmentSubmissionRecord,
    ProctoringViolationCreate, ProctoringViolationRecord, ViolationReview,
    PublicQuizSubmissionCreate, PublicQuizSubmissionRecord,
    SubmittedAnswer, QuizSubmitRequest, PublicSubmitRequest, PublicSubmitResult,
    AssignmentSubmitRequest, GradeRequest,
)
from .chat import ChatCommandResult, ChatCommandCreate, ChatCommandRecord, ChatRequest

__all__ = [
    "CamelModel", "UtcDateTime", "utcnow", "new_id",
    "UserCreate", "UserRecord", "UserPublic", "PasswordResetTokenRecord",
    "CourseCreate", "CourseRequest", "CourseRecord", "CourseUpdate",
    "LectureCreate", "LectureRecord", "LectureUpdate",
    "EnrollmentCreate", "EnrollmentRecord", "EnrollRequest",
    "DEFAULT_IDENTIFICATION_FIELDS", "RubricCriterion",
    "QuestionCreate", "QuestionRecord", "QuestionUpdate",
    "QuizCreate", "QuizRecord", "QuizUpdate", "QuizWithQuestions",
    "QuizQuestionCreate", "QuizQuestionRecord", "QuizQuestionDetail", "AddQuizQuestionRequest",
    "AssignmentCreate", "AssignmentRecord", "AssignmentUpdate",
    "PublicLinkRequest",
    "AnswerRecord", "RubricScore",
    "QuizSubmissionCreate", "QuizSubmissionRecord",
    "AssignmentSubmissionCreate", "AssignmentSubmissionRecord",
    "ProctoringViolationCreate", "ProctoringViolationRecord", "ViolationReview",
    "PublicQuizSubmissionCreate", "PublicQuizSubmissionRecord",
    "SubmittedAnswer", "QuizSubmitRequest", "PublicSubmitRequest", "PublicSubmitResult",
    "AssignmentSubmitRequest", "GradeRequest",
    "ChatCommandResult", "ChatCommandCreate", "ChatCommandRecord", "ChatRequest",
]
