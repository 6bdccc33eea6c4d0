"""User directory: who else can be messaged."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import repository
from src.auth.dependencies import CurrentUser, get_current_user
from src.auth.schemas import UserPublic
from src.db.client import get_db

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("", summary="List users", description="Public profile of every other registered user.")
async def list_all(user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    users = await repository.list_users(db, exclude_id=user.id)
    return {"status": "success", "data": [UserPublic.model_validate(u) for u in users]}
