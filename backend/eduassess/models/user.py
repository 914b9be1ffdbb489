"""User and PasswordResetToken models."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Boolean, Enum as SQLEnum
from sqlalchemy.sql import func
import uuid

from ..database import Base
from .enums import UserRole, AiProvider


class User(Base):
    """Application user: admin, instructor or student."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(100), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole, name="user_role"), nullable=False, default=UserRole.student)
    avatar_url = Column(Text)

    # AI provider keys
    gemini_api_key = Column(Text)
    openai_api_key = Column(Text)
    openrouter_api_key = Column(Text)
    grok_api_key = Column(Text)
    kimi_api_key = Column(Text)
    anthropic_api_key = Column(Text)
    custom_api_key = Column(Text)
    custom_api_base_url = Column(Text)
    custom_api_model = Column(Text)
    active_ai_provider = Column(SQLEnum(AiProvider, name="ai_provider"), default=AiProvider.gemini)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"

    @property
    def is_instructor(self) -> bool:
        return self.role in (UserRole.instructor, UserRole.admin)

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.student


class PasswordResetToken(Base):
    """One-time token issued by the password reset flow."""
    __tablename__ = "password_reset_tokens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token = Column(String(255), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<PasswordResetToken(id={self.id}, user_id={self.user_id})>"
