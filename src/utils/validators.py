"""Shared validators and utility schemas."""

from typing import Any

from pydantic import BaseModel

from src.utils.exceptions import InvalidInput


class SuccessResponse(BaseModel):
    status: str = "success"
    data: Any


def require_text(value: str, field: str = "content") -> str:
    """Strip surrounding whitespace and reject what is left if empty."""
    stripped = value.strip() if value is not None else ""
    if not stripped:
        raise InvalidInput(f"{field} must not be empty")
    return stripped
