"""Natural-language commands for instructors, executed against the repository."""
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from ..ai import features
from ..errors import AiProviderError, EduAssessError
from ..models.enums import ChatCommandStatus, PublicLinkPermission
from ..schemas import (
    CamelModel, ChatCommandCreate, ChatCommandRecord, ChatCommandResult,
    CourseCreate, QuizCreate, PublicLinkRequest, UserRecord, utcnow,
)
from ..storage import Storage
from .public_links import generate_link
from .stats import get_course_analytics

logger = logging.getLogger(__name__)

NO_COURSES_MESSAGE = "No courses found. Please create a course first."
LIST_LIMIT = 10


class ChatOutcome(CamelModel):
    command: ChatCommandRecord
    result: ChatCommandResult
    ai_response: str


def _json(model) -> Any:
    return model.model_dump(mode="json", by_alias=True)


def _user_quizzes(storage: Storage, user: UserRecord) -> List:
    quizzes = []
    for course in storage.get_courses(instructor_id=user.id):
        quizzes.extend(storage.get_quizzes(course_id=course.id))
    return quizzes


def _create_quiz(storage: Storage, user: UserRecord, params: Dict[str, Any], base_url: str) -> ChatCommandResult:
    courses = storage.get_courses(instructor_id=user.id)
    if not courses:
        return ChatCommandResult(success=False, message=NO_COURSES_MESSAGE)
    quiz = storage.create_quiz(QuizCreate(
        course_id=courses[0].id,
        title=params.get("title") or "New Quiz",
        description=params.get("description") or None,
    ))
    return ChatCommandResult(success=True, message=f'Quiz "{quiz.title}" created successfully!', data=_json(quiz))


def _create_course(storage: Storage, user: UserRecord, params: Dict[str, Any], base_url: str) -> ChatCommandResult:
    course = storage.create_course(CourseCreate(
        name=params.get("name") or "New Course",
        code=params.get("code") or "COURSE101",
        description=params.get("description") or None,
        semester=params.get("semester") or "Spring 2026",
        instructor_id=user.id,
    ))
    return ChatCommandResult(success=True, message=f'Course "{course.name}" created successfully!', data=_json(course))


def _generate_public_link(storage: Storage, user: UserRecord, params: Dict[str, Any], base_url: str) -> ChatCommandResult:
    quizzes = _user_quizzes(storage, user)
    if not quizzes:
        return ChatCommandResult(success=False, message="No quizzes found. Please create a quiz first.")

    wanted = str(params.get("quizName") or "").lower()
    quiz = next((q for q in quizzes if wanted and wanted in q.title.lower()), quizzes[0])
    permission = PublicLinkPermission.view if params.get("permission") == "view" else PublicLinkPermission.attempt

    link = generate_link(storage, quiz.id, PublicLinkRequest(permission=permission), base_url)
    return ChatCommandResult(
        success=True,
        message=f'Public link generated for "{quiz.title}"',
        data={"quiz": _json(link.quiz), "publicUrl": link.public_url},
    )


def _view_analytics(storage: Storage, user: UserRecord, params: Dict[str, Any], base_url: str) -> ChatCommandResult:
    analytics = get_course_analytics(storage, instructor_id=user.id)
    return ChatCommandResult(success=True, message="Here is an overview of your courses.", data=_json(analytics))


def _list_quizzes(storage: Storage, user: UserRecord, params: Dict[str, Any], base_url: str) -> ChatCommandResult:
    quizzes = _user_quizzes(storage, user)
    return ChatCommandResult(
        success=True,
        message=f"You have {len(quizzes)} quiz(zes).",
        data=[_json(q) for q in quizzes[:LIST_LIMIT]],
    )


def _list_courses(storage: Storage, user: UserRecord, params: Dict[str, Any], base_url: str) -> ChatCommandResult:
    courses = storage.get_courses(instructor_id=user.id)
    return ChatCommandResult(
        success=True,
        message=f"You have {len(courses)} course(s).",
        data=[_json(c) for c in courses],
    )


INTENT_HANDLERS = {
    "create_quiz": _create_quiz,
    "create_course": _create_course,
    "generate_public_link": _generate_public_link,
    "view_analytics": _view_analytics,
    "list_quizzes": _list_quizzes,
    "list_courses": _list_courses,
}


def run_command(storage: Storage, user: UserRecord, message: str, conversation_id: int = None, base_url: str = "") -> ChatOutcome:
    """Record, interpret and execute a chat command.

    The command row is written first with status 'executing'. If the provider
    call fails, the row is marked 'failed' and the AiProviderError propagates.
    """
    command = storage.create_chat_command(ChatCommandCreate(
        user_id=user.id,
        conversation_id=conversation_id,
        command=message,
        status=ChatCommandStatus.executing,
    ))

    try:
        parsed = features.parse_command(user, message)
    except AiProviderError as e:
        logger.error(f"Chat command {command.id} failed: {e}")
        storage.update_chat_command(command.id, {
            "status": ChatCommandStatus.failed,
            "result": ChatCommandResult(success=False, message=str(e)),
            "completed_at": utcnow(),
        })
        raise

    handler = INTENT_HANDLERS.get(parsed.intent)
    if handler is None:
        result = ChatCommandResult(success=True, message=parsed.message or features.UNPARSED_COMMAND_MESSAGE)
    else:
        try:
            result = handler(storage, user, parsed.parameters, base_url)
        except (ValidationError, EduAssessError) as e:
            logger.error(f"Chat command {command.id} ({parsed.intent}) could not be executed: {e}")
            result = ChatCommandResult(success=False, message=f"Could not {parsed.intent.replace('_', ' ')}: invalid parameters")

    command = storage.update_chat_command(command.id, {
        "intent": parsed.intent,
        "parameters": parsed.parameters,
        "status": ChatCommandStatus.completed if result.success else ChatCommandStatus.failed,
        "result": result,
        "completed_at": utcnow(),
    })
    logger.info(f"Chat command {command.id} ({parsed.intent}) finished: {command.status.value}")
    ai_response = (parsed.message or result.message) if result.success else result.message
    return ChatOutcome(command=command, result=result, ai_response=ai_response)
