"""Unauthenticated access to quizzes shared through a public link."""
from fastapi import APIRouter, Depends, Request

from ..schemas import PublicSubmitRequest, PublicSubmitResult
from ..services import public_links
from ..storage import Storage, get_storage
from .deps import not_found

router = APIRouter(prefix="/public", tags=["Public"])


@router.get("/quiz/{token}", response_model=public_links.PublicQuizView)
async def get_public_quiz(token: str, storage: Storage = Depends(get_storage)):
    view = public_links.view_quiz(storage, token)
    if view is None:
        raise not_found("Quiz")
    return view


@router.post("/quiz/{token}/submit", response_model=PublicSubmitResult)
async def submit_public_quiz(
    token: str,
    submission: PublicSubmitRequest,
    request: Request,
    storage: Storage = Depends(get_storage),
):
    """Score an anonymous attempt; view-only links refuse with 403."""
    ip_address = request.client.host if request.client else None
    result = public_links.submit_quiz(storage, token, submission, ip_address=ip_address)
    if result is None:
        raise not_found("Quiz")
    return result
