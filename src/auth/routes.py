"""Auth endpoints: register, login, refresh, logout, me."""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import repository
from src.auth.dependencies import CurrentUser, get_current_user
from src.auth.jwt import REFRESH, create_access_token, create_refresh_token, decode_token
from src.auth.passwords import hash_password, verify_password
from src.auth.schemas import LoginData, LoginRequest, RefreshRequest, RegisterRequest, UserPublic, UserResponse
from src.config.settings import get_settings
from src.db.client import get_db
from src.utils.exceptions import Conflict, InvalidCredentials, NotFound, Unauthenticated
from src.utils.validators import SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


# --- Helpers ---

def _set_refresh_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME,
        token,
        max_age=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        path=settings.REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def _clear_refresh_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, path=settings.REFRESH_COOKIE_PATH)


def _presented_refresh_token(request: Request, body: RefreshRequest | None) -> str | None:
    if body and body.refresh_token:
        return body.refresh_token
    return request.cookies.get(get_settings().REFRESH_COOKIE_NAME)


async def _issue_refresh_token(db: AsyncSession, user_id: str) -> str:
    token = create_refresh_token(user_id)
    expires_at = repository.epoch_to_datetime(decode_token(token, REFRESH)["exp"])
    await repository.store_refresh_token(db, user_id, token, expires_at)
    return token


# --- Endpoints ---

@router.post("/register", status_code=201, response_model=SuccessResponse, summary="Register a new user", description="Create a new user account. Does not log the user in.")
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    email = body.email.lower()
    if await repository.get_user_by_email(db, email):
        raise Conflict()

    try:
        user = await repository.create_user(db, email, body.name, hash_password(body.password))
    except IntegrityError:
        await db.rollback()
        raise Conflict()

    logger.info("Registered user %s", user.id)
    return SuccessResponse(data=UserResponse.model_validate(user))


@router.post("/login", response_model=SuccessResponse, summary="Login", description="Authenticate with email and password. Returns an access token; the refresh token is set as an HTTP-only cookie.")
async def login(body: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    user = await repository.get_user_by_email(db, body.email.lower())
    if not user or not verify_password(body.password, user.password_hash):
        raise InvalidCredentials()

    _set_refresh_cookie(response, await _issue_refresh_token(db, user.id))
    logger.info("User %s logged in", user.id)
    return SuccessResponse(
        data=LoginData(access_token=create_access_token(user.id), user=UserPublic.model_validate(user))
    )


@router.post("/refresh", response_model=SuccessResponse, summary="Refresh access token", description="Exchange a valid refresh token (cookie or body) for a new access token. The refresh token is rotated and the old one revoked.")
async def refresh(request: Request, response: Response, body: RefreshRequest | None = None, db: AsyncSession = Depends(get_db)):
    token = _presented_refresh_token(request, body)
    if not token:
        raise Unauthenticated("Missing refresh token")

    user_id = decode_token(token, REFRESH)["sub"]
    stored = await repository.get_refresh_token(db, token)
    if not stored or stored.user_id != user_id:
        raise Unauthenticated("Refresh token revoked or not found")

    # Only one concurrent caller can flip the row, so a token is usable once.
    if not await repository.revoke_refresh_token(db, token):
        logger.warning("Reuse of rotated refresh token for user %s", user_id)
        raise Unauthenticated("Refresh token revoked or not found")

    user = await repository.get_user_by_id(db, user_id)
    if not user:
        raise Unauthenticated()

    _set_refresh_cookie(response, await _issue_refresh_token(db, user_id))
    return SuccessResponse(
        data=LoginData(access_token=create_access_token(user_id), user=UserPublic.model_validate(user))
    )


@router.post("/logout", summary="Logout", description="Revoke the refresh token and clear its cookie. Access tokens remain valid until they expire.")
async def logout(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = _presented_refresh_token(request, body)
    if token:
        await repository.revoke_refresh_token(db, token, user_id=user.id)
    _clear_refresh_cookie(response)
    return {"status": "success", "data": {"message": "Logged out successfully"}}


@router.get("/me", response_model=SuccessResponse, summary="Current user")
async def me(user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    record = await repository.get_user_by_id(db, user.id)
    if not record:
        raise NotFound("User not found")
    return SuccessResponse(data=UserResponse.model_validate(record))
