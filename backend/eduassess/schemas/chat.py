"""Chat assistant command records."""
from typing import Any, Dict, Optional

from pydantic import Field

from ..models.enums import ChatCommandStatus
from .base import CamelModel, UtcDateTime, new_id, utcnow


class ChatCommandResult(CamelModel):
    success: bool
    message: str
    data: Optional[Any] = None


class ChatCommandCreate(CamelModel):
    user_id: str
    conversation_id: Optional[int] = None
    command: str
    intent: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None
    status: ChatCommandStatus = ChatCommandStatus.pending
    result: Optional[ChatCommandResult] = None
    completed_at: Optional[UtcDateTime] = None


class ChatCommandRecord(ChatCommandCreate):
    id: str = Field(default_factory=new_id)
    created_at: UtcDateTime = Field(default_factory=utcnow)


class ChatRequest(CamelModel):
    message: str
    conversation_id: Optional[int] = None
