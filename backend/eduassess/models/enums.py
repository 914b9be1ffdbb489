"""Shared enums for models, schemas and the API."""
import enum


class UserRole(str, enum.Enum):
    admin = "admin"
    instructor = "instructor"
    student = "student"


class QuestionType(str, enum.Enum):
    mcq = "mcq"
    true_false = "true_false"
    short_answer = "short_answer"
    essay = "essay"
    fill_blank = "fill_blank"
    matching = "matching"


class AssessmentStatus(str, enum.Enum):
    draft = "draft"
    published = "published"
    closed = "closed"


class SubmissionStatus(str, enum.Enum):
    """Submission lifecycle; members are declared in lifecycle order."""
    in_progress = "in_progress"
    submitted = "submitted"
    graded = "graded"

    @property
    def rank(self) -> int:
        return list(SubmissionStatus).index(self)


class ViolationType(str, enum.Enum):
    tab_switch = "tab_switch"
    copy_paste = "copy_paste"
    multiple_faces = "multiple_faces"
    no_face = "no_face"
    phone_detected = "phone_detected"
    unauthorized_person = "unauthorized_person"
    looking_away = "looking_away"
    suspicious_behavior = "suspicious_behavior"


class PublicLinkPermission(str, enum.Enum):
    view = "view"
    attempt = "attempt"


class ChatCommandStatus(str, enum.Enum):
    pending = "pending"
    executing = "executing"
    completed = "completed"
    failed = "failed"


class AiProvider(str, enum.Enum):
    gemini = "gemini"
    openai = "openai"
    openrouter = "openrouter"
    grok = "grok"
    kimi = "kimi"
    anthropic = "anthropic"
    custom = "custom"
