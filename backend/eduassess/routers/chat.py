"""Chat assistant commands and history."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..auth import get_current_user, require_instructor
from ..errors import AiProviderError
from ..schemas import ChatCommandRecord, ChatRequest, UserRecord
from ..services.chat import ChatOutcome, run_command
from ..storage import Storage, get_storage
from .deps import base_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.post("/command", response_model=ChatOutcome)
def chat_command(
    chat: ChatRequest,
    request: Request,
    current_user: UserRecord = Depends(require_instructor),
    storage: Storage = Depends(get_storage),
):
    try:
        return run_command(storage, current_user, chat.message, chat.conversation_id, base_url(request))
    except AiProviderError as e:
        logger.error(f"Chat assistant failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"AI assistant is unavailable: {e}")


@router.get("/history", response_model=List[ChatCommandRecord])
async def chat_history(
    current_user: UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return storage.get_chat_commands(current_user.id)
