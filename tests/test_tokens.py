"""Tests for token issuing/verification and bearer extraction."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from src.auth.dependencies import authenticate_token, extract_bearer_token
from src.auth.jwt import REFRESH, create_access_token, create_refresh_token, decode_token, verify_token
from src.utils.exceptions import InvalidToken, Unauthenticated

USER_ID = "3f1c9a7e-0000-4000-8000-000000000001"


def _ago(**kwargs) -> datetime:
    return datetime.now(timezone.utc) - timedelta(**kwargs)


def test_access_token_round_trip():
    assert verify_token(create_access_token(USER_ID)) == USER_ID


def test_access_token_valid_at_14_minutes():
    token = create_access_token(USER_ID, now=_ago(minutes=14))
    assert verify_token(token) == USER_ID


def test_access_token_expired_at_16_minutes():
    token = create_access_token(USER_ID, now=_ago(minutes=16))
    with pytest.raises(InvalidToken):
        verify_token(token)


def test_refresh_token_lifetime():
    assert verify_token(create_refresh_token(USER_ID, now=_ago(days=6)), REFRESH) == USER_ID
    with pytest.raises(InvalidToken):
        verify_token(create_refresh_token(USER_ID, now=_ago(days=8)), REFRESH)


def test_refresh_tokens_are_unique():
    assert create_refresh_token(USER_ID) != create_refresh_token(USER_ID)


def test_token_type_is_enforced():
    with pytest.raises(InvalidToken):
        verify_token(create_refresh_token(USER_ID))
    with pytest.raises(InvalidToken):
        verify_token(create_access_token(USER_ID), REFRESH)


def test_tampered_token_fails():
    token = create_access_token(USER_ID)
    header, payload, signature = token.split(".")
    flipped = signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")
    with pytest.raises(InvalidToken):
        verify_token(f"{header}.{payload}.{flipped}")


def test_foreign_secret_fails():
    token = jwt.encode(
        {"sub": USER_ID, "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret-that-is-long-enough-for-hs256",
        algorithm="HS256",
    )
    with pytest.raises(InvalidToken):
        verify_token(token)


def test_malformed_token_fails():
    for token in ("", "abc", "a.b.c"):
        with pytest.raises(InvalidToken):
            decode_token(token)


def test_expired_and_forged_look_the_same():
    expired = create_access_token(USER_ID, now=_ago(hours=1))
    with pytest.raises(InvalidToken) as expired_exc:
        verify_token(expired)
    with pytest.raises(InvalidToken) as forged_exc:
        verify_token("forged.token.value")
    assert expired_exc.value.message == forged_exc.value.message


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc") == "abc"
    assert extract_bearer_token("bearer abc") == "abc"
    assert extract_bearer_token("Bearer ") is None
    assert extract_bearer_token("Basic abc") is None
    assert extract_bearer_token(None) is None


def test_authenticate_token():
    assert authenticate_token(create_access_token(USER_ID)).id == USER_ID
    with pytest.raises(Unauthenticated):
        authenticate_token(None)
    with pytest.raises(Unauthenticated):
        authenticate_token("garbage")
