"""Tests for the chat assistant's command execution."""

import json
from unittest.mock import patch

import pytest

from eduassess.ai.features import UNPARSED_COMMAND_MESSAGE
from eduassess.ai.providers import GenerationResult
from eduassess.errors import AiProviderError
from eduassess.models.enums import AiProvider, ChatCommandStatus, PublicLinkPermission
from eduassess.schemas import QuizCreate
from eduassess.services.chat import NO_COURSES_MESSAGE, run_command


def reply(text) -> GenerationResult:
    if not isinstance(text, str):
        text = json.dumps(text)
    return GenerationResult(text=text, provider=AiProvider.gemini, model="gemini-2.5-flash")


@pytest.fixture
def mock_generate():
    with patch("eduassess.ai.features.generate_with_provider") as mock:
        yield mock


class TestRunCommand:
    def test_create_quiz_in_first_course(self, storage, instructor, course, mock_generate):
        mock_generate.return_value = reply({
            "intent": "create_quiz",
            "parameters": {"title": "Photosynthesis Check"},
            "message": "Creating a quiz called Photosynthesis Check.",
        })

        outcome = run_command(storage, instructor, "make a quiz on photosynthesis", conversation_id=3)

        assert outcome.result.success is True
        assert outcome.command.status == ChatCommandStatus.completed
        assert outcome.command.intent == "create_quiz"
        assert outcome.command.conversation_id == 3
        assert outcome.command.completed_at is not None
        assert outcome.ai_response == "Creating a quiz called Photosynthesis Check."
        quizzes = storage.get_quizzes(course_id=course.id)
        assert [q.title for q in quizzes] == ["Photosynthesis Check"]
        assert outcome.result.data["id"] == quizzes[0].id

    def test_create_quiz_without_courses_fails(self, storage, instructor, mock_generate):
        mock_generate.return_value = reply({"intent": "create_quiz", "parameters": {"title": "Q"}, "message": ""})

        outcome = run_command(storage, instructor, "make a quiz")

        assert outcome.result.success is False
        assert outcome.result.message == NO_COURSES_MESSAGE
        assert outcome.command.status == ChatCommandStatus.failed
        assert storage.get_quizzes() == []

    def test_create_course(self, storage, instructor, mock_generate):
        mock_generate.return_value = reply({
            "intent": "create_course",
            "parameters": {"name": "Organic Chemistry", "code": "CHEM201"},
            "message": "",
        })

        outcome = run_command(storage, instructor, "new course CHEM201 organic chemistry")

        course = storage.get_courses(instructor_id=instructor.id)[0]
        assert course.code == "CHEM201"
        assert course.semester
        assert outcome.ai_response == 'Course "Organic Chemistry" created successfully!'

    def test_generate_public_link_by_quiz_name(self, storage, instructor, course, quiz, mock_generate):
        target = storage.create_quiz(QuizCreate(course_id=course.id, title="Mitosis Review"))
        mock_generate.return_value = reply({
            "intent": "generate_public_link",
            "parameters": {"quizName": "mitosis", "permission": "view"},
            "message": "Sharing Mitosis Review.",
        })

        outcome = run_command(storage, instructor, "share the mitosis quiz read-only", base_url="https://quiz.example.com")

        stored = storage.get_quiz(target.id)
        assert stored.public_link_permission == PublicLinkPermission.view
        assert outcome.result.data["publicUrl"] == f"https://quiz.example.com/public/quiz/{stored.public_access_token}"
        assert storage.get_quiz(quiz.id).public_access_token is None

    def test_list_courses(self, storage, instructor, course, mock_generate):
        mock_generate.return_value = reply({"intent": "list_courses", "parameters": {}, "message": ""})

        outcome = run_command(storage, instructor, "what am I teaching?")

        assert outcome.result.message == "You have 1 course(s)."
        assert [c["code"] for c in outcome.result.data] == ["BIO101"]

    def test_unknown_intent_is_answered(self, storage, instructor, mock_generate):
        mock_generate.return_value = reply({"intent": "order_pizza", "parameters": None, "message": "I can't do that."})

        outcome = run_command(storage, instructor, "order a pizza")

        assert outcome.command.intent == "unknown"
        assert outcome.command.status == ChatCommandStatus.completed
        assert outcome.result.message == "I can't do that."

    def test_unparseable_reply(self, storage, instructor, mock_generate):
        mock_generate.return_value = reply("Sure thing!")

        outcome = run_command(storage, instructor, "hello")

        assert outcome.command.intent == "unknown"
        assert outcome.result.message == UNPARSED_COMMAND_MESSAGE

    def test_provider_failure_marks_command_failed(self, storage, instructor, mock_generate):
        mock_generate.side_effect = AiProviderError("No API key configured for Google Gemini")

        with pytest.raises(AiProviderError):
            run_command(storage, instructor, "list my quizzes")

        history = storage.get_chat_commands(instructor.id)
        assert len(history) == 1
        assert history[0].status == ChatCommandStatus.failed
        assert history[0].result.success is False
        assert history[0].completed_at is not None

    def test_malformed_parameters_fail_the_command(self, storage, instructor, mock_generate):
        mock_generate.return_value = reply({
            "intent": "create_course",
            "parameters": {"name": {"x": 1}, "code": "CHEM201"},
            "message": "Creating your course.",
        })

        outcome = run_command(storage, instructor, "new course")

        assert outcome.result.success is False
        assert outcome.command.status == ChatCommandStatus.failed
        assert outcome.command.completed_at is not None
        assert outcome.ai_response == outcome.result.message
        assert storage.get_courses(instructor_id=instructor.id) == []
        assert [c.status for c in storage.get_chat_commands(instructor.id)] == [ChatCommandStatus.failed]
