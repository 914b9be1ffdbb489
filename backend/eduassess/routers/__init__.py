"""REST API routers, mounted under /api by the application."""
from fastapi import APIRouter

from ..auth import auth_router
from . import ai, assignments, chat, courses, dashboard, lectures, proctoring, public, questions, quizzes, submissions

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
for module in (courses, lectures, questions, quizzes, submissions, assignments, proctoring, public, dashboard, ai, chat):
    api_router.include_router(module.router)

__all__ = ["api_router"]
