"""Pydantic schemas for auth and user requests and responses."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

# bcrypt only looks at the first 72 bytes and rejects longer input.
MAX_PASSWORD_BYTES = 72

DisplayName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    email: EmailStr
    name: DisplayName
    password: str = Field(min_length=6, max_length=MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class UserPublic(BaseModel):
    id: str
    email: str
    name: str

    model_config = {"from_attributes": True}


class UserResponse(UserPublic):
    created_at: datetime


class LoginData(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic
