"""
Prompt builders and response parsers for each AI-assisted feature.

Every helper goes through generate_with_provider, so the user's active
provider (or the platform fallback) is used throughout.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import Field, ValidationError, field_validator

from ..errors import AiProviderError
from ..models.enums import QuestionType, ViolationType
from ..schemas import CamelModel, AssignmentRecord, AssignmentSubmissionRecord, RubricScore
from .providers import generate_with_provider

logger = logging.getLogger(__name__)

_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

CHAT_INTENTS = [
    "create_quiz",
    "create_course",
    "generate_public_link",
    "view_analytics",
    "list_quizzes",
    "list_courses",
    "unknown",
]


def extract_json(text: str, array: bool = False) -> Any:
    """Pull the outermost JSON object (or array) out of a model reply."""
    match = (_ARRAY_PATTERN if array else _OBJECT_PATTERN).search(text or "")
    if not match:
        raise AiProviderError("Failed to parse AI response: no JSON found")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AiProviderError(f"Failed to parse AI response: {e}") from e


def _ask(user, prompt: str, system: Optional[str] = None, **kwargs) -> str:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return generate_with_provider(messages, user, **kwargs).text


class GeneratedQuestion(CamelModel):
    type: QuestionType
    text: str
    options: Optional[List[str]] = None
    correct_answer: str
    explanation: Optional[str] = None
    difficulty: str = "medium"
    points: int = 1

    @field_validator("correct_answer", mode="before")
    @classmethod
    def stringify_answer(cls, v):
        # true/false answers often come back as JSON booleans
        if isinstance(v, bool):
            return "true" if v else "false"
        return v


def generate_questions(user, content: str, num_questions: int = 5, difficulty: str = "mixed") -> List[GeneratedQuestion]:
    prompt = f"""Generate {num_questions} quiz questions based on the following content.
Mix question types (multiple choice, true/false, short answer, fill in the blank).
Difficulty level: {difficulty}

Content:
{content}

Respond in JSON format:
{{
  "questions": [
    {{
      "type": "mcq" | "true_false" | "short_answer" | "fill_blank",
      "text": "Question text",
      "options": ["Option A", "Option B", "Option C", "Option D"] (for MCQ only),
      "correctAnswer": "The correct answer",
      "explanation": "Why the answer is correct",
      "difficulty": "easy" | "medium" | "hard",
      "points": 1-3
    }}
  ]
}}"""
    parsed = extract_json(_ask(user, prompt, json_mode=True))
    questions = []
    for item in parsed.get("questions", []) if isinstance(parsed, dict) else []:
        try:
            questions.append(GeneratedQuestion.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed generated question: {e}")
    return questions


class LectureSummary(CamelModel):
    summary: str
    key_points: List[str] = Field(default_factory=list)


def summarize_lecture(user, title: str, content: Optional[str]) -> LectureSummary:
    prompt = f"""Analyze this lecture and provide:
1. A concise summary (2-3 paragraphs)
2. 5-7 key points as bullet points

Lecture title: {title}
Content: {content or "No content available"}

Respond in JSON format:
{{
  "summary": "string",
  "keyPoints": ["string", "string"]
}}"""
    try:
        return LectureSummary.model_validate(extract_json(_ask(user, prompt, json_mode=True)))
    except ValidationError as e:
        raise AiProviderError(f"Failed to parse AI response: {e}") from e


class AiGrade(CamelModel):
    score: int
    feedback: str = ""
    rubric_scores: List[RubricScore] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def round_score(cls, v):
        if isinstance(v, float):
            return int(round(v))
        return v


def grade_submission(user, assignment: AssignmentRecord, submission: AssignmentSubmissionRecord) -> AiGrade:
    """Ask the provider for a score, feedback and per-criterion rubric scores.

    Scores are clamped to the assignment's range and rubric scores naming a
    criterion the assignment does not define are dropped.
    """
    rubric_lines = "\n".join(
        f"- {c.criterion} (max {c.max_points} points): {c.description}" for c in assignment.rubric or []
    ) or "No rubric provided; grade holistically."
    prompt = f"""Grade this student submission.

Assignment: {assignment.title}
Instructions: {assignment.instructions or assignment.description or "None"}
Maximum score: {assignment.max_score}

Rubric:
{rubric_lines}

Submission:
{submission.content or "(empty submission)"}

Respond in JSON format:
{{
  "score": number,
  "feedback": "Constructive feedback for the student",
  "rubricScores": [{{"criterion": "criterion name", "score": number, "feedback": "string"}}]
}}"""
    system = "You are a fair and consistent teaching assistant grading coursework."
    try:
        grade = AiGrade.model_validate(extract_json(_ask(user, prompt, system=system, json_mode=True)))
    except ValidationError as e:
        raise AiProviderError(f"Failed to parse AI grading response: {e}") from e

    limits = {c.criterion: c.max_points for c in assignment.rubric or []}
    grade.rubric_scores = [
        RubricScore(
            criterion=rs.criterion,
            score=max(0, min(rs.score, limits[rs.criterion])),
            feedback=rs.feedback,
        )
        for rs in grade.rubric_scores
        if rs.criterion in limits
    ]
    grade.score = max(0, min(grade.score, assignment.max_score))
    return grade


class AiDetection(CamelModel):
    ai_probability: int
    reasoning: str = ""

    @field_validator("ai_probability", mode="before")
    @classmethod
    def clamp(cls, v):
        return max(0, min(100, int(round(float(v)))))


def detect_ai_content(user, text: str) -> AiDetection:
    prompt = f"""Estimate how likely it is that the following text was written by an AI model.

Text:
{text or "(empty)"}

Respond in JSON format:
{{
  "aiProbability": number from 0 to 100,
  "reasoning": "Brief explanation"
}}"""
    try:
        return AiDetection.model_validate(extract_json(_ask(user, prompt, json_mode=True)))
    except (ValidationError, ValueError, TypeError) as e:
        raise AiProviderError(f"Failed to parse AI detection response: {e}") from e


class DetectedViolation(CamelModel):
    type: ViolationType
    description: str = ""


FRAME_PROMPT = """Analyze this webcam frame for potential cheating behaviors in an online exam.
Look for:
1. No face visible (looking away or covering camera)
2. Multiple faces visible
3. Phone or other device visible
4. Suspicious movements (looking at another screen, reading notes)
5. Another person in frame

Return ONLY a JSON array of violations found (empty array if none):
[
  { "type": "no_face" | "multiple_faces" | "phone_detected" | "unauthorized_person" | "looking_away" | "suspicious_behavior", "description": "Brief description" }
]"""


def analyze_frame(user, image_data: str) -> List[DetectedViolation]:
    """Inspect a webcam frame; image_data is a data URL or bare base64 JPEG."""
    url = image_data if image_data.startswith("data:") else f"data:image/jpeg;base64,{image_data}"
    messages = [{
        "role": "user",
        "content": [
            {"type": "text", "text": FRAME_PROMPT},
            {"type": "image_url", "image_url": {"url": url}},
        ],
    }]
    text = generate_with_provider(messages, user).text
    violations = []
    for item in extract_json(text or "[]", array=True):
        try:
            violations.append(DetectedViolation.model_validate(item))
        except ValidationError:
            logger.warning(f"Ignoring unrecognised violation from frame analysis: {item}")
    return violations


class ParsedCommand(CamelModel):
    intent: str = "unknown"
    parameters: Dict[str, Any] = Field(default_factory=dict)
    message: str = ""

    @field_validator("intent", mode="before")
    @classmethod
    def known_intent(cls, v):
        return v if v in CHAT_INTENTS else "unknown"

    @field_validator("parameters", mode="before")
    @classmethod
    def default_parameters(cls, v):
        return v or {}


UNPARSED_COMMAND_MESSAGE = (
    "I couldn't understand that command. Try asking me to create a quiz or generate a public link."
)


def parse_command(user, command: str) -> ParsedCommand:
    """Classify a chat command. Provider errors propagate; unparseable replies become 'unknown'."""
    prompt = f"""You are an AI assistant for an educational assessment platform called EduAssess AI.

Analyze this user command and extract the intent and parameters. Return a JSON object with:
- intent: one of {", ".join(f'"{i}"' for i in CHAT_INTENTS)}
- parameters: relevant extracted parameters like title, name, code, semester, quizName, permission
- message: a brief confirmation message of what you'll do

User command: "{command}"

Return only valid JSON, no markdown."""
    text = _ask(user, prompt, json_mode=True)
    try:
        return ParsedCommand.model_validate(extract_json(text))
    except (AiProviderError, ValidationError) as e:
        logger.info(f"Chat command not understood: {e}")
        return ParsedCommand(intent="unknown", parameters={}, message=UNPARSED_COMMAND_MESSAGE)
