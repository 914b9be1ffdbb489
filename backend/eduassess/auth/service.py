"""Authentication service for handling user authentication and token management."""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from ..models.enums import UserRole
from ..schemas import UserCreate, UserRecord
from ..storage import Storage, get_storage
from .models import (
    RegisterRequest, TokenData, hash_password, verify_password,
    SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, PASSWORD_RESET_EXPIRE_MINUTES,
)

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


class AuthService:
    def __init__(self, storage: Storage):
        self.storage = storage

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a new access token."""
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    def token_for(self, user: UserRecord) -> str:
        return self.create_access_token(data={"sub": user.id, "role": user.role.value})

    def verify_token(self, token: str) -> TokenData:
        """Verify and decode a JWT token."""
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
            user_id: str = payload.get("sub")
            if user_id is None or payload.get("type") != "access":
                raise credentials_exception
            return TokenData(user_id=user_id, role=payload.get("role"))
        except JWTError:
            raise credentials_exception

    def authenticate_user(self, login: str, password: str) -> Optional[UserRecord]:
        """Authenticate with a username or email and a password."""
        user = self.storage.get_user_by_username(login)
        if user is None and "@" in login:
            user = self.storage.get_user_by_email(login)
        if not user or not verify_password(password, user.password):
            return None
        return user

    def register_user(self, data: RegisterRequest) -> UserRecord:
        """Register a new user."""
        if data.role == UserRole.admin:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admin accounts cannot be self-registered"
            )
        if self.storage.get_user_by_username(data.username):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already taken"
            )
        if self.storage.get_user_by_email(data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        user = self.storage.create_user(UserCreate(
            username=data.username,
            password=hash_password(data.password),
            email=data.email,
            name=data.name,
            role=data.role,
        ))
        logger.info(f"Registered {user.role.value} {user.username}")
        return user

    def create_password_reset(self, email: str) -> Optional[str]:
        """Issue a reset token for the account with this email, if there is one."""
        user = self.storage.get_user_by_email(email)
        if user is None:
            return None
        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=PASSWORD_RESET_EXPIRE_MINUTES)
        self.storage.create_password_reset_token(user.id, token, expires_at)
        logger.info(f"Password reset token issued for user {user.id}")
        return token

    def reset_password(self, token: str, new_password: str) -> UserRecord:
        """Set a new password using an unused, unexpired reset token."""
        record = self.storage.get_password_reset_token(token)
        if record is None or record.used or record.expires_at <= datetime.now(timezone.utc):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

        user = self.storage.update_user(record.user_id, {"password": hash_password(new_password)})
        if user is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")
        self.storage.mark_password_reset_token_used(token)
        return user


def get_auth_service(storage: Storage = Depends(get_storage)) -> AuthService:
    """Dependency to get an instance of AuthService."""
    return AuthService(storage)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    service: AuthService = Depends(get_auth_service),
) -> UserRecord:
    """Dependency to get the current user from the JWT token."""
    token_data = service.verify_token(token)
    user = service.storage.get_user(token_data.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_instructor(current_user: UserRecord = Depends(get_current_user)) -> UserRecord:
    """Dependency for instructor-only endpoints; admins pass as well."""
    if not current_user.is_instructor:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Instructor access required")
    return current_user


def require_admin(current_user: UserRecord = Depends(get_current_user)) -> UserRecord:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
