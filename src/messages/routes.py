"""Message endpoints: list, send, edit, delete."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import CurrentUser, get_current_user
from src.db.client import get_db
from src.messages import service
from src.messages.schemas import EditMessageRequest, MessageListResponse, SendMessageRequest
from src.realtime.router import RoomRouter, get_room_router

MAX_PAGE_SIZE = 50

conversation_router = APIRouter(prefix="/api/v1/conversations/{conversation_id}", tags=["Messages"])
router = APIRouter(prefix="/api/v1/messages", tags=["Messages"])


@conversation_router.get("/messages", response_model=MessageListResponse, summary="List messages", description="The most recent messages of a conversation, oldest first. Use before_seq to page further back.")
async def list_messages(
    conversation_id: str,
    limit: int = Query(MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    before_seq: int | None = Query(None, ge=1),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    messages = await service.list_messages(db, conversation_id, user.id, limit, before_seq)
    return MessageListResponse(data=messages, limit=limit)


@conversation_router.post("/messages", summary="Send a message", description="Append a message and fan it out to the conversation's live subscribers as message:new.")
async def send(
    conversation_id: str,
    body: SendMessageRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    room_router: RoomRouter = Depends(get_room_router),
):
    message = await service.append(db, room_router, conversation_id, user.id, body.content)
    return {"status": "success", "data": message}


@router.patch("/{message_id}", summary="Edit a message", description="Replace the content of one of your own messages.")
async def edit(
    message_id: str,
    body: EditMessageRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    room_router: RoomRouter = Depends(get_room_router),
):
    message = await service.edit(db, room_router, message_id, user.id, body.content)
    return {"status": "success", "data": message}


@router.delete("/{message_id}", summary="Delete a message", description="Permanently delete one of your own messages.")
async def delete(
    message_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    room_router: RoomRouter = Depends(get_room_router),
):
    message = await service.delete(db, room_router, message_id, user.id)
    return {"status": "success", "data": message}
