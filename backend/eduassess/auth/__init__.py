"""Authentication package for the application."""
from .models import Token, RegisterRequest, hash_password, verify_password
from .service import AuthService, get_current_user, require_instructor, require_admin
from .router import router as auth_router

__all__ = [
    'Token',
    'RegisterRequest',
    'hash_password',
    'verify_password',
    'AuthService',
    'get_current_user',
    'require_instructor',
    'require_admin',
    'auth_router'
]
