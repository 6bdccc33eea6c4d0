"""Business logic for conversations with participant verification."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import repository as users
from src.conversations import repository
from src.conversations.schemas import ConversationResponse
from src.db.models import Conversation
from src.utils.exceptions import Forbidden, InvalidInput, InvalidParticipants, NotFound

logger = logging.getLogger(__name__)


async def require_participant(db: AsyncSession, conversation_id: str, user_id: str) -> None:
    """Sole authorization check for conversation-scoped work. Checked fresh every call."""
    if not await repository.is_participant(db, conversation_id, user_id):
        # Same answer whether the conversation is missing or just not theirs.
        raise Forbidden("You are not a participant of this conversation")


async def find_or_create(db: AsyncSession, user_a: str, user_b: str) -> tuple[Conversation, bool]:
    """Return the pair's conversation and whether it was created by this call."""
    if user_a == user_b:
        raise InvalidParticipants()

    existing = await repository.get_by_pair(db, user_a, user_b)
    if existing:
        return existing, False

    try:
        conv = await repository.create_pair(db, user_a, user_b)
    except IntegrityError:
        # Lost a race with a concurrent create for the same pair.
        await db.rollback()
        existing = await repository.get_by_pair(db, user_a, user_b)
        if not existing:
            raise
        return existing, False

    logger.info("Created conversation %s", conv.id)
    return conv, True


async def start_conversation(db: AsyncSession, caller_id: str, participant_ids: list[str]) -> tuple[Conversation, bool]:
    if caller_id not in participant_ids:
        raise InvalidInput("participant_ids must include yourself")
    other_ids = [pid for pid in participant_ids if pid != caller_id]
    if not other_ids:
        raise InvalidParticipants()
    other_id = other_ids[0]
    if not await users.get_user_by_id(db, other_id):
        raise NotFound("User not found")
    return await find_or_create(db, caller_id, other_id)


async def list_for(db: AsyncSession, user_id: str) -> list[ConversationResponse]:
    """All of the user's conversations, most recently active first."""
    conversations = await repository.list_by_user(db, user_id)
    latest = await repository.latest_messages(db, [c.id for c in conversations])
    return [ConversationResponse.from_conversation(c, latest.get(c.id)) for c in conversations]


async def get_conversation(db: AsyncSession, conversation_id: str, user_id: str) -> Conversation:
    await require_participant(db, conversation_id, user_id)
    conv = await repository.get_by_id(db, conversation_id)
    if not conv:
        raise NotFound("Conversation not found")
    return conv
