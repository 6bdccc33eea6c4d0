"""Message ledger: append, list, edit and delete with per-operation authorization.

Every operation re-checks participation itself rather than trusting the
identity gate. A successful append, edit or delete is committed first and
only then announced to the conversation's room, once.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import get_settings
from src.conversations.service import require_participant
from src.db.models import Message
from src.messages import repository
from src.messages.schemas import MessageResponse
from src.realtime import events
from src.realtime.router import RoomRouter
from src.utils.exceptions import Forbidden
from src.utils.validators import require_text

logger = logging.getLogger(__name__)


async def _owned_message(db: AsyncSession, message_id: str, requester_id: str) -> Message:
    message = await repository.get_by_id(db, message_id)
    # Missing and not-yours look the same from outside.
    if not message or message.sender_id != requester_id:
        raise Forbidden("You can only change your own messages")
    await require_participant(db, message.conversation_id, requester_id)
    return message


async def append(
    db: AsyncSession,
    room_router: RoomRouter,
    conversation_id: str,
    sender_id: str,
    content: str,
) -> MessageResponse:
    await require_participant(db, conversation_id, sender_id)
    text = require_text(content)

    message = MessageResponse.model_validate(await repository.create(db, conversation_id, sender_id, text))
    await room_router.fanout(conversation_id, events.message_new(message))
    return message


async def list_messages(
    db: AsyncSession,
    conversation_id: str,
    requester_id: str,
    limit: int = 50,
    before_seq: int | None = None,
) -> list[MessageResponse]:
    await require_participant(db, conversation_id, requester_id)
    limit = max(1, min(limit, get_settings().MESSAGE_PAGE_LIMIT))
    messages = await repository.list_recent(db, conversation_id, limit, before_seq)
    return [MessageResponse.model_validate(m) for m in messages]


async def edit(
    db: AsyncSession,
    room_router: RoomRouter,
    message_id: str,
    requester_id: str,
    new_content: str,
) -> MessageResponse:
    message = await _owned_message(db, message_id, requester_id)
    text = require_text(new_content)

    updated = MessageResponse.model_validate(await repository.update_content(db, message, text))
    await room_router.fanout(updated.conversation_id, events.message_updated(updated))
    return updated


async def delete(
    db: AsyncSession,
    room_router: RoomRouter,
    message_id: str,
    requester_id: str,
) -> MessageResponse:
    message = await _owned_message(db, message_id, requester_id)
    snapshot = MessageResponse.model_validate(message)

    await repository.delete_by_id(db, message_id)
    logger.info("Message %s deleted by %s", message_id, requester_id)
    await room_router.fanout(snapshot.conversation_id, events.message_deleted(snapshot))
    return snapshot
