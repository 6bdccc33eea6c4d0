"""Data access layer for users and issued refresh tokens."""

import hashlib
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.client import bounded
from src.db.models import RefreshToken, User


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    return await bounded(db.get(User, user_id))


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await bounded(db.execute(select(User).where(User.email == email)))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, email: str, name: str, password_hash: str) -> User:
    user = User(email=email, name=name, password_hash=password_hash)
    db.add(user)
    await bounded(db.commit())
    return user


async def list_users(db: AsyncSession, exclude_id: str | None = None) -> list[User]:
    stmt = select(User).order_by(User.name)
    if exclude_id:
        stmt = stmt.where(User.id != exclude_id)
    result = await bounded(db.execute(stmt))
    return list(result.scalars())


async def store_refresh_token(db: AsyncSession, user_id: str, token: str, expires_at: datetime) -> None:
    db.add(RefreshToken(user_id=user_id, token_hash=hash_token(token), expires_at=expires_at))
    await bounded(db.commit())


async def get_refresh_token(db: AsyncSession, token: str) -> RefreshToken | None:
    result = await bounded(db.execute(select(RefreshToken).where(RefreshToken.token_hash == hash_token(token))))
    return result.scalar_one_or_none()


async def revoke_refresh_token(db: AsyncSession, token: str, user_id: str | None = None) -> bool:
    stmt = (
        update(RefreshToken)
        .where(RefreshToken.token_hash == hash_token(token), RefreshToken.is_revoked.is_(False))
        .values(is_revoked=True)
    )
    if user_id:
        stmt = stmt.where(RefreshToken.user_id == user_id)
    result = await bounded(db.execute(stmt))
    await bounded(db.commit())
    return result.rowcount > 0


def epoch_to_datetime(epoch: int) -> datetime:
    return datetime.fromtimestamp(epoch, tz=timezone.utc)
