"""Pydantic schemas for conversation requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.auth.schemas import UserPublic
from src.db.models import Conversation, Message
from src.messages.schemas import MessageResponse


# --- Requests ---

class CreateConversationRequest(BaseModel):
    participant_ids: list[str] = Field(min_length=2, max_length=2)


# --- Responses ---

class ConversationResponse(BaseModel):
    id: str
    participants: list[UserPublic]
    created_at: datetime
    last_message_at: datetime | None = None
    last_message: MessageResponse | None = None

    @classmethod
    def from_conversation(cls, conv: Conversation, last_message: Message | None = None) -> "ConversationResponse":
        return cls(
            id=conv.id,
            participants=[UserPublic.model_validate(p.user) for p in conv.participants],
            created_at=conv.created_at,
            last_message_at=conv.last_message_at,
            last_message=MessageResponse.model_validate(last_message) if last_message else None,
        )


class ConversationListResponse(BaseModel):
    status: str = "success"
    data: list[ConversationResponse]
