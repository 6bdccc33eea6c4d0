"""Data access layer for conversations and their participants."""

from sqlalchemy import func, select, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.client import bounded
from src.db.models import Conversation, Message, Participant


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for an unordered pair of user ids."""
    return ":".join(sorted((user_a, user_b)))


async def is_participant(db: AsyncSession, conversation_id: str, user_id: str) -> bool:
    stmt = (
        select(Participant.id)
        .where(Participant.conversation_id == conversation_id, Participant.user_id == user_id)
        .limit(1)
    )
    result = await bounded(db.execute(stmt))
    return result.first() is not None


async def get_by_id(db: AsyncSession, conversation_id: str) -> Conversation | None:
    stmt = select(Conversation).where(Conversation.id == conversation_id).execution_options(populate_existing=True)
    result = await bounded(db.execute(stmt))
    return result.scalar_one_or_none()


async def get_by_pair(db: AsyncSession, user_a: str, user_b: str) -> Conversation | None:
    stmt = (
        select(Conversation)
        .where(Conversation.pair_key == pair_key(user_a, user_b))
        .execution_options(populate_existing=True)
    )
    result = await bounded(db.execute(stmt))
    conv = result.scalar_one_or_none()
    # The key already pins the pair; the participant set must match it exactly.
    if conv and {p.user_id for p in conv.participants} != {user_a, user_b}:
        return None
    return conv


async def create_pair(db: AsyncSession, user_a: str, user_b: str) -> Conversation:
    """Insert the conversation and both participant rows in one transaction."""
    conv = Conversation(
        pair_key=pair_key(user_a, user_b),
        participants=[Participant(user_id=user_a), Participant(user_id=user_b)],
    )
    db.add(conv)
    await bounded(db.commit())
    return await get_by_id(db, conv.id)


async def list_by_user(db: AsyncSession, user_id: str) -> list[Conversation]:
    activity = func.coalesce(Conversation.last_message_at, Conversation.created_at)
    stmt = (
        select(Conversation)
        .join(Participant, Participant.conversation_id == Conversation.id)
        .where(Participant.user_id == user_id)
        .order_by(activity.desc(), Conversation.id)
    )
    result = await bounded(db.execute(stmt))
    return list(result.scalars().unique())


async def latest_messages(db: AsyncSession, conversation_ids: list[str]) -> dict[str, Message]:
    if not conversation_ids:
        return {}
    newest = (
        select(Message.conversation_id, func.max(Message.seq))
        .where(Message.conversation_id.in_(conversation_ids))
        .group_by(Message.conversation_id)
    )
    stmt = select(Message).where(tuple_(Message.conversation_id, Message.seq).in_(newest))
    result = await bounded(db.execute(stmt))
    return {m.conversation_id: m for m in result.scalars()}
