"""Question, quiz and assignment records."""
from typing import Optional, List

from pydantic import Field

from ..models.enums import QuestionType, AssessmentStatus, PublicLinkPermission
from .base import CamelModel, UtcDateTime, new_id, utcnow


DEFAULT_IDENTIFICATION_FIELDS = ["name", "email"]


class RubricCriterion(CamelModel):
    criterion: str
    max_points: int
    description: str = ""


class QuestionCreate(CamelModel):
    course_id: Optional[str] = None
    lecture_id: Optional[str] = None
    type: QuestionType
    difficulty: str = "medium"
    text: str
    options: Optional[List[str]] = None
    correct_answer: str
    explanation: Optional[str] = None
    points: int = 1
    tags: Optional[List[str]] = None
    image_url: Optional[str] = None
    ai_generated: bool = False


class QuestionRecord(QuestionCreate):
    id: str = Field(default_factory=new_id)
    created_at: UtcDateTime = Field(default_factory=utcnow)


class QuestionUpdate(CamelModel):
    lecture_id: Optional[str] = None
    type: Optional[QuestionType] = None
    difficulty: Optional[str] = None
    text: Optional[str] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    explanation: Optional[str] = None
    points: Optional[int] = None
    tags: Optional[List[str]] = None
    image_url: Optional[str] = None


class QuizCreate(CamelModel):
    course_id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    time_limit_minutes: Optional[int] = None
    passing_score: int = 60
    randomize_questions: bool = True
    randomize_options: bool = True
    show_results: bool = True
    proctored: bool = False
    violation_threshold: int = 5
    attachment_url: Optional[str] = None
    attachment_type: Optional[str] = None
    attachment_name: Optional[str] = None
    status: AssessmentStatus = AssessmentStatus.draft
    start_date: Optional[UtcDateTime] = None
    end_date: Optional[UtcDateTime] = None
    public_access_token: Optional[str] = None
    public_link_permission: Optional[PublicLinkPermission] = None
    public_link_enabled: bool = False
    required_identification_fields: Optional[List[str]] = None


class QuizRecord(QuizCreate):
    id: str = Field(default_factory=new_id)
    created_at: UtcDateTime = Field(default_factory=utcnow)

    @property
    def has_public_link(self) -> bool:
        return bool(self.public_link_enabled and self.public_access_token)


class QuizUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    time_limit_minutes: Optional[int] = None
    passing_score: Optional[int] = None
    randomize_questions: Optional[bool] = None
    randomize_options: Optional[bool] = None
    show_results: Optional[bool] = None
    proctored: Optional[bool] = None
    violation_threshold: Optional[int] = None
    attachment_url: Optional[str] = None
    attachment_type: Optional[str] = None
    attachment_name: Optional[str] = None
    status: Optional[AssessmentStatus] = None
    start_date: Optional[UtcDateTime] = None
    end_date: Optional[UtcDateTime] = None


class QuizWithQuestions(QuizCreate):
    """Quiz creation payload that may carry inline questions."""
    questions: List[QuestionCreate] = Field(default_factory=list)


class QuizQuestionCreate(CamelModel):
    quiz_id: str
    question_id: str
    order_index: int


class QuizQuestionRecord(QuizQuestionCreate):
    id: str = Field(default_factory=new_id)


class QuizQuestionDetail(QuizQuestionRecord):
    """Join row together with the question it points at."""
    question: QuestionRecord


class AddQuizQuestionRequest(CamelModel):
    question_id: str
    order_index: Optional[int] = None


class AssignmentCreate(CamelModel):
    course_id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    rubric: Optional[List[RubricCriterion]] = None
    max_score: int = 100
    allow_late_submission: bool = False
    late_penalty_percent: int = 10
    status: AssessmentStatus = AssessmentStatus.draft
    due_date: Optional[UtcDateTime] = None


class AssignmentRecord(AssignmentCreate):
    id: str = Field(default_factory=new_id)
    created_at: UtcDateTime = Field(default_factory=utcnow)

    @property
    def criterion_names(self) -> List[str]:
        return [c.criterion for c in self.rubric or []]


class AssignmentUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    rubric: Optional[List[RubricCriterion]] = None
    max_score: Optional[int] = None
    allow_late_submission: Optional[bool] = None
    late_penalty_percent: Optional[int] = None
    status: Optional[AssessmentStatus] = None
    due_date: Optional[UtcDateTime] = None


class PublicLinkRequest(CamelModel):
    permission: PublicLinkPermission = PublicLinkPermission.attempt
    required_fields: List[str] = Field(default_factory=lambda: list(DEFAULT_IDENTIFICATION_FIELDS))
