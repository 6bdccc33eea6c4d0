"""Data access layer for the message ledger."""

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.client import bounded
from src.db.models import Conversation, Message, utcnow


async def get_by_id(db: AsyncSession, message_id: str) -> Message | None:
    stmt = select(Message).where(Message.id == message_id).execution_options(populate_existing=True)
    result = await bounded(db.execute(stmt))
    return result.scalar_one_or_none()


async def create(db: AsyncSession, conversation_id: str, sender_id: str, content: str) -> Message:
    """Append a message, taking the conversation's next sequence number in the same transaction."""
    now = utcnow()
    # The row update serialises concurrent appends to one conversation.
    await bounded(db.execute(
        update(Conversation)
        .where(Conversation.id == conversation_id)
        .values(message_seq=Conversation.message_seq + 1, last_message_at=now)
        .execution_options(synchronize_session=False)
    ))
    seq = (await bounded(db.execute(
        select(Conversation.message_seq).where(Conversation.id == conversation_id)
    ))).scalar_one()

    message = Message(conversation_id=conversation_id, sender_id=sender_id, seq=seq, content=content, created_at=now)
    db.add(message)
    await bounded(db.commit())
    return await get_by_id(db, message.id)


async def list_recent(db: AsyncSession, conversation_id: str, limit: int, before_seq: int | None = None) -> list[Message]:
    """The newest ``limit`` messages, returned oldest first."""
    stmt = select(Message).where(Message.conversation_id == conversation_id)
    if before_seq is not None:
        stmt = stmt.where(Message.seq < before_seq)
    stmt = stmt.order_by(Message.seq.desc()).limit(limit)
    result = await bounded(db.execute(stmt))
    return list(reversed(result.scalars().all()))


async def update_content(db: AsyncSession, message: Message, content: str) -> Message:
    message.content = content
    await bounded(db.commit())
    return await get_by_id(db, message.id)


async def delete_by_id(db: AsyncSession, message_id: str) -> None:
    await bounded(db.execute(delete(Message).where(Message.id == message_id)))
    await bounded(db.commit())
