"""Identity gate: resolve the caller from a bearer credential.

HTTP requests carry the access token in the ``Authorization`` header. Live
connections present the same token either in that header at handshake time,
as a ``token`` query parameter, or in their first ``auth`` frame.
"""

from dataclasses import dataclass

from fastapi import Request
from starlette.requests import HTTPConnection

from src.auth.jwt import verify_token
from src.utils.exceptions import Unauthenticated


@dataclass(frozen=True)
class CurrentUser:
    id: str


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def handshake_token(conn: HTTPConnection) -> str | None:
    """Credential offered while opening a live connection, if any."""
    return extract_bearer_token(conn.headers.get("Authorization")) or conn.query_params.get("token") or None


def authenticate_token(token: str | None) -> CurrentUser:
    if not token:
        raise Unauthenticated("Missing authentication credentials")
    return CurrentUser(id=verify_token(token))


async def get_current_user(request: Request) -> CurrentUser:
    """FastAPI dependency: authenticate via Bearer JWT."""
    user = authenticate_token(extract_bearer_token(request.headers.get("Authorization")))
    request.state.user_id = user.id
    return user
