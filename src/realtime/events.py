"""Live-channel frame formatting. Every frame is ``{"event": name, "data": payload}``."""

from typing import Any

from src.messages.schemas import MessageResponse

# Client -> server
AUTH = "auth"
ROOM_JOIN = "room:join"
ROOM_LEAVE = "room:leave"
PING = "ping"

# Server -> client
CONNECTED = "connected"
ROOM_JOINED = "room:joined"
ROOM_LEFT = "room:left"
PONG = "pong"
MESSAGE_NEW = "message:new"
MESSAGE_UPDATED = "message:updated"
MESSAGE_DELETED = "message:deleted"
ERROR = "error"


def _frame(event: str, data: Any) -> dict:
    return {"event": event, "data": data}


def connected(user_id: str) -> dict:
    return _frame(CONNECTED, {"user_id": user_id})


def room_joined(conversation_id: str) -> dict:
    return _frame(ROOM_JOINED, {"conversation_id": conversation_id})


def room_left(conversation_id: str) -> dict:
    return _frame(ROOM_LEFT, {"conversation_id": conversation_id})


def pong() -> dict:
    return _frame(PONG, {})


def message_new(message: MessageResponse) -> dict:
    return _frame(MESSAGE_NEW, message.model_dump(mode="json"))


def message_updated(message: MessageResponse) -> dict:
    return _frame(MESSAGE_UPDATED, message.model_dump(mode="json"))


def message_deleted(message: MessageResponse) -> dict:
    return _frame(MESSAGE_DELETED, {"id": message.id, "conversation_id": message.conversation_id})


def error(error_type: str, message: str) -> dict:
    return _frame(ERROR, {"type": error_type, "message": message})
