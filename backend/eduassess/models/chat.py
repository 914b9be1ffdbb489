"""Chat assistant command log."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Integer, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
import uuid

from ..database import Base
from .enums import ChatCommandStatus


class ChatCommand(Base):
    """A natural-language command issued to the assistant and its outcome."""
    __tablename__ = "chat_commands"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    conversation_id = Column(Integer)
    command = Column(Text, nullable=False)
    intent = Column(String(64))
    parameters = Column(JSON)
    status = Column(SQLEnum(ChatCommandStatus, name="chat_command_status"), nullable=False, default=ChatCommandStatus.pending)
    result = Column(JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True))

    def __repr__(self):
        return f"<ChatCommand(id={self.id}, intent='{self.intent}')>"

    @property
    def is_finished(self) -> bool:
        return self.status in (ChatCommandStatus.completed, ChatCommandStatus.failed)
