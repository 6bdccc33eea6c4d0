"""JWT token creation and verification.

Tokens are stateless: the only claims are the user id (``sub``), the token
type, issue/expiry times and, for refresh tokens, a unique ``jti``.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt

from src.config.settings import get_settings
from src.utils.exceptions import InvalidToken

ACCESS = "access"
REFRESH = "refresh"


def _encode(user_id: str, token_type: str, lifetime: timedelta, now: datetime | None = None, **extra) -> str:
    settings = get_settings()
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        **extra,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: str, now: datetime | None = None) -> str:
    settings = get_settings()
    return _encode(user_id, ACCESS, timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES), now)


def create_refresh_token(user_id: str, now: datetime | None = None) -> str:
    settings = get_settings()
    return _encode(
        user_id, REFRESH, timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS), now, jti=uuid.uuid4().hex
    )


def decode_token(token: str, expected_type: str = ACCESS) -> dict:
    """Decode and validate a JWT of the given type. Raises InvalidToken on any failure."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.PyJWTError:
        # Expired and forged tokens are reported the same way.
        raise InvalidToken()
    if payload.get("type") != expected_type:
        raise InvalidToken()
    return payload


def verify_token(token: str, expected_type: str = ACCESS) -> str:
    """Return the user id bound to a valid token."""
    return decode_token(token, expected_type)["sub"]
