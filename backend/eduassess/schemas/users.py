"""User records and their public projection."""
from typing import Optional

from pydantic import EmailStr, Field

from ..models.enums import UserRole, AiProvider
from .base import CamelModel, UtcDateTime, new_id, utcnow


class UserCreate(CamelModel):
    username: str
    password: str
    email: EmailStr
    name: str
    role: UserRole = UserRole.student
    avatar_url: Optional[str] = None
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    grok_api_key: Optional[str] = None
    kimi_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    custom_api_key: Optional[str] = None
    custom_api_base_url: Optional[str] = None
    custom_api_model: Optional[str] = None
    active_ai_provider: AiProvider = AiProvider.gemini


class UserRecord(UserCreate):
    id: str = Field(default_factory=new_id)
    created_at: UtcDateTime = Field(default_factory=utcnow)

    @property
    def is_instructor(self) -> bool:
        return self.role in (UserRole.instructor, UserRole.admin)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


class UserPublic(CamelModel):
    """What the API exposes about a user: no password hash, no API keys."""
    id: str
    username: str
    email: str
    name: str
    role: UserRole
    avatar_url: Optional[str] = None
    active_ai_provider: Optional[AiProvider] = None
    created_at: UtcDateTime


class PasswordResetTokenRecord(CamelModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    token: str
    expires_at: UtcDateTime
    used: bool = False
    created_at: UtcDateTime = Field(default_factory=utcnow)
