"""Authentication router for handling user authentication endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from ..schemas import UserPublic, UserRecord
from .models import Token, RegisterRequest, PasswordResetRequest, PasswordResetConfirm
from .service import AuthService, get_auth_service, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class RegisterResponse(UserPublic):
    access_token: str
    token_type: str = "bearer"


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user and sign them in."""
    try:
        user = service.register_user(user_data)
        return RegisterResponse(**user.model_dump(), access_token=service.token_for(user))
    except HTTPException as e:
        raise e
    except Exception as e:
        logger.error(f"Registration failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.post("/login", response_model=Token)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service)
):
    """OAuth2 compatible token login, get an access token for future requests."""
    user = service.authenticate_user(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=service.token_for(user))


@router.post("/request-password-reset")
async def request_password_reset(
    email_data: PasswordResetRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Request a password reset email."""
    service.create_password_reset(email_data.email)
    # Same answer whether or not the account exists
    return {"message": "If an account with this email exists, a password reset link has been sent"}


@router.post("/reset-password")
async def reset_password(
    reset_data: PasswordResetConfirm,
    service: AuthService = Depends(get_auth_service)
):
    """Reset a user's password using a reset token."""
    service.reset_password(reset_data.token, reset_data.new_password)
    return {"message": "Password has been reset successfully"}


@router.get("/me", response_model=UserPublic)
async def read_users_me(current_user: UserRecord = Depends(get_current_user)):
    """Get the current user's profile."""
    return UserPublic.model_validate(current_user.model_dump())
