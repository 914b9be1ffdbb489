"""Authentication settings, password hashing and request/response schemas."""
import os
import string
from typing import Optional

import bcrypt
from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models.enums import UserRole
from ..schemas import CamelModel

# JWT Configuration
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
PASSWORD_RESET_EXPIRE_MINUTES = int(os.getenv("PASSWORD_RESET_EXPIRE_MINUTES", "60"))


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, hashed: str) -> bool:
    """Verify the provided password against the stored hash."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def check_password_complexity(v: str) -> str:
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters long')
    if not any(char.isdigit() for char in v):
        raise ValueError('Password must contain at least one number')
    if not any(char.isalpha() for char in v):
        raise ValueError('Password must contain at least one letter')
    return v


# Pydantic models for request/response schemas
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    user_id: Optional[str] = None
    role: Optional[str] = None


class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str
    name: str = Field(..., min_length=1)
    role: UserRole = UserRole.student

    @field_validator('username')
    @classmethod
    def username_charset(cls, v: str) -> str:
        allowed = set(string.ascii_letters + string.digits + "._-")
        if not set(v) <= allowed:
            raise ValueError('Username may only contain letters, numbers, dots, dashes and underscores')
        return v

    @field_validator('password')
    @classmethod
    def password_complexity(cls, v: str) -> str:
        return check_password_complexity(v)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(CamelModel):
    token: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def password_complexity(cls, v: str) -> str:
        return check_password_complexity(v)
