"""Pydantic schemas for message requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.auth.schemas import UserPublic

MAX_CONTENT_LENGTH = 4000


class SendMessageRequest(BaseModel):
    content: str = Field(max_length=MAX_CONTENT_LENGTH)


class EditMessageRequest(BaseModel):
    content: str = Field(max_length=MAX_CONTENT_LENGTH)


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    sender: UserPublic
    seq: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageListResponse(BaseModel):
    status: str = "success"
    data: list[MessageResponse]
    limit: int
