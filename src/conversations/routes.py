"""Conversation endpoints: list, find-or-create, get."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import CurrentUser, get_current_user
from src.conversations.schemas import ConversationListResponse, ConversationResponse, CreateConversationRequest
from src.conversations.service import get_conversation, list_for, start_conversation
from src.db.client import get_db

router = APIRouter(prefix="/api/v1/conversations", tags=["Conversations"])


@router.get("", response_model=ConversationListResponse, summary="List conversations", description="List the authenticated user's conversations, most recently active first.")
async def list_all(user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return ConversationListResponse(data=await list_for(db, user.id))


@router.post("", status_code=201, summary="Start a conversation", description="Find or create the one-to-one conversation between the caller and another user. Returns 201 when created, 200 when it already existed.")
async def create(
    body: CreateConversationRequest,
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conv, created = await start_conversation(db, user.id, body.participant_ids)
    if not created:
        response.status_code = 200
    return {"status": "success", "data": ConversationResponse.from_conversation(conv)}


@router.get("/{conversation_id}", summary="Get a conversation", description="Retrieve a conversation the caller participates in.")
async def get(conversation_id: str, user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    conv = await get_conversation(db, conversation_id, user.id)
    return {"status": "success", "data": ConversationResponse.from_conversation(conv)}
