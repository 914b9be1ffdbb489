"""Test configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eduassess.auth import AuthService, hash_password
from eduassess.database import Base
from eduassess.main import app
from eduassess.models.enums import AssessmentStatus, QuestionType, UserRole
from eduassess.schemas import (
    AssignmentCreate, CourseCreate, EnrollmentCreate, QuestionCreate,
    QuizCreate, QuizQuestionCreate, RubricCriterion, UserCreate,
)
from eduassess.storage import MemStorage, SqlStorage, get_storage
from eduassess import models  # noqa: F401


# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "Passw0rd!"


@pytest.fixture
def engine():
    """Create a fresh test database engine per test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create test database session."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def mem_storage():
    return MemStorage()


@pytest.fixture
def sql_storage(session_factory):
    return SqlStorage(session_factory=session_factory)


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    """Runs a test once against each storage backend."""
    if request.param == "memory":
        return request.getfixturevalue("mem_storage")
    return request.getfixturevalue("sql_storage")


def make_user(storage, username, role=UserRole.student, **extra):
    return storage.create_user(UserCreate(
        username=username,
        password=hash_password(TEST_PASSWORD),
        email=f"{username}@example.com",
        name=username.replace("_", " ").title(),
        role=role,
        **extra,
    ))


def add_questions(storage, quiz, specs):
    """Create questions from (type, text, correct answer, points) tuples and attach them in order."""
    questions = []
    for index, (qtype, text, answer, points) in enumerate(specs):
        question = storage.create_question(QuestionCreate(
            course_id=quiz.course_id,
            type=qtype,
            text=text,
            options=["3", "4", "5"] if qtype == QuestionType.mcq else None,
            correct_answer=answer,
            points=points,
        ))
        storage.add_quiz_question(QuizQuestionCreate(quiz_id=quiz.id, question_id=question.id, order_index=index))
        questions.append(question)
    return questions


@pytest.fixture
def instructor(storage):
    return make_user(storage, "prof_ada", role=UserRole.instructor)


@pytest.fixture
def student(storage):
    return make_user(storage, "student_sam")


@pytest.fixture
def course(storage, instructor):
    return storage.create_course(CourseCreate(
        name="Intro to Biology",
        code="BIO101",
        semester="Fall 2026",
        instructor_id=instructor.id,
    ))


@pytest.fixture
def enrolled_student(storage, course, student):
    storage.create_enrollment(EnrollmentCreate(course_id=course.id, student_id=student.id))
    return student


@pytest.fixture
def quiz(storage, course):
    return storage.create_quiz(QuizCreate(course_id=course.id, title="Cells Quiz"))


@pytest.fixture
def quiz_questions(storage, quiz):
    return add_questions(storage, quiz, [
        (QuestionType.mcq, "2 + 2?", "4", 2),
        (QuestionType.true_false, "Cells have membranes.", "true", 1),
        (QuestionType.short_answer, "Powerhouse of the cell?", "Mitochondria", 1),
    ])


@pytest.fixture
def assignment(storage, course):
    return storage.create_assignment(AssignmentCreate(
        course_id=course.id,
        title="Lab Report",
        max_score=50,
        status=AssessmentStatus.published,
        rubric=[
            RubricCriterion(criterion="Method", max_points=20, description="Clear procedure"),
            RubricCriterion(criterion="Analysis", max_points=30, description="Sound conclusions"),
        ],
    ))


# API fixtures run on a fresh in-memory store
@pytest.fixture
def api_storage():
    return MemStorage()


@pytest.fixture
def client(api_storage):
    app.dependency_overrides[get_storage] = lambda: api_storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(api_storage):
    """Build bearer headers for a user stored in api_storage."""
    def _headers(user):
        token = AuthService(api_storage).token_for(user)
        return {"Authorization": f"Bearer {token}"}
    return _headers
