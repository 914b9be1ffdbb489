"""Question bank, Quiz, QuizQuestion and Assignment models."""

from sqlalchemy import (
    Column, String, Text, DateTime, ForeignKey, Boolean, Integer, JSON,
    Enum as SQLEnum, UniqueConstraint,
)
from sqlalchemy.sql import func
import uuid

from ..database import Base
from .enums import QuestionType, AssessmentStatus, PublicLinkPermission


class Question(Base):
    """Question bank entry; can be reused across quizzes."""
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), index=True)
    lecture_id = Column(String(36), ForeignKey("lectures.id", ondelete="SET NULL"), index=True)
    type = Column(SQLEnum(QuestionType, name="question_type"), nullable=False)
    difficulty = Column(String(20), nullable=False, default="medium")
    text = Column(Text, nullable=False)
    options = Column(JSON)
    correct_answer = Column(Text, nullable=False)
    explanation = Column(Text)
    points = Column(Integer, nullable=False, default=1)
    tags = Column(JSON)
    image_url = Column(String(500))
    ai_generated = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Question(id={self.id}, type='{self.type}')>"


class Quiz(Base):
    """Quiz model, including its optional public access link."""
    __tablename__ = "quizzes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    instructions = Column(Text)
    time_limit_minutes = Column(Integer)
    passing_score = Column(Integer, default=60)
    randomize_questions = Column(Boolean, default=True)
    randomize_options = Column(Boolean, default=True)
    show_results = Column(Boolean, default=True)
    proctored = Column(Boolean, default=False)
    violation_threshold = Column(Integer, default=5)
    attachment_url = Column(String(500))
    attachment_type = Column(String(100))
    attachment_name = Column(String(255))
    status = Column(SQLEnum(AssessmentStatus, name="assessment_status"), nullable=False, default=AssessmentStatus.draft)
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    public_access_token = Column(String(64), index=True)
    public_link_permission = Column(SQLEnum(PublicLinkPermission, name="public_link_permission"))
    public_link_enabled = Column(Boolean, default=False)
    required_identification_fields = Column(JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Quiz(id={self.id}, title='{self.title}')>"

    @property
    def has_public_link(self) -> bool:
        return bool(self.public_link_enabled and self.public_access_token)


class QuizQuestion(Base):
    """Ordered join between quizzes and questions."""
    __tablename__ = "quiz_questions"
    __table_args__ = (UniqueConstraint("quiz_id", "order_index", name="uq_quiz_question_order"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    quiz_id = Column(String(36), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    order_index = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<QuizQuestion(quiz_id={self.quiz_id}, order_index={self.order_index})>"


class Assignment(Base):
    """Assignment model with an optional grading rubric."""
    __tablename__ = "assignments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    instructions = Column(Text)
    rubric = Column(JSON)
    max_score = Column(Integer, nullable=False, default=100)
    allow_late_submission = Column(Boolean, default=False)
    late_penalty_percent = Column(Integer, default=10)
    status = Column(SQLEnum(AssessmentStatus, name="assessment_status"), nullable=False, default=AssessmentStatus.draft)
    due_date = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Assignment(id={self.id}, title='{self.title}')>"

    @property
    def rubric_total_points(self):
        """Sum of max points across rubric criteria."""
        if not self.rubric:
            return 0
        return sum(criterion.get("max_points", 0) for criterion in self.rubric)

    def get_criterion(self, name: str):
        """Get a rubric criterion by name."""
        for criterion in self.rubric or []:
            if criterion.get("criterion") == name:
                return criterion
        return None
