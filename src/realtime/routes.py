"""Live channel: authenticated WebSocket with room join/leave and message push.

Connection flow:
    1. Connect to ``/ws``, optionally with ``Authorization: Bearer <jwt>`` or ``?token=<jwt>``.
    2. Without a handshake credential, the first frame must be ``{"event": "auth", "data": {"token": ...}}``.
    3. Join rooms: ``{"event": "room:join", "data": {"conversation_id": ...}}``.
    4. Receive ``message:new`` / ``message:updated`` / ``message:deleted`` for joined rooms.
    5. Send ``ping`` at least every heartbeat interval, or be evicted.

Close codes:
    4401: not authenticated
    1001: heartbeat timeout
    1013: evicted by the room router (outbox overflowed)
"""

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, WebSocket, status
from starlette.websockets import WebSocketDisconnect

from src.auth.dependencies import authenticate_token, handshake_token
from src.config.settings import get_settings
from src.realtime import events
from src.realtime.router import Connection, get_room_router
from src.utils.exceptions import AppError, Unauthenticated

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

WS_UNAUTHENTICATED = 4401
# How long a server-side close waits for queued frames to go out.
CLOSE_FLUSH_SECONDS = 1.0


class _CloseConnection(Exception):
    def __init__(self, code: int, reason: str):
        super().__init__(reason)
        self.code = code
        self.reason = reason


def _conversation_id(data) -> str | None:
    if isinstance(data, str):
        return data or None
    if isinstance(data, dict):
        value = data.get("conversation_id")
        return value if isinstance(value, str) and value else None
    return None


def _authenticate(connection: Connection, token: str | None) -> None:
    try:
        user = authenticate_token(token)
    except Unauthenticated:
        raise _CloseConnection(WS_UNAUTHENTICATED, "Invalid or expired token")
    connection.authenticate(user.id)
    connection.offer(events.connected(user.id))
    logger.info("Connection %s authenticated as user %s", connection.id, user.id)


async def _handle_frame(websocket: WebSocket, connection: Connection, frame: dict) -> None:
    room_router = get_room_router(websocket)
    event = frame.get("event")
    data = frame.get("data")

    if event == events.PING:
        connection.offer(events.pong())
        return

    if not connection.authenticated:
        if event == events.AUTH and isinstance(data, dict):
            _authenticate(connection, data.get("token"))
            return
        raise _CloseConnection(WS_UNAUTHENTICATED, "Authenticate before using rooms")

    if event in (events.ROOM_JOIN, events.ROOM_LEAVE):
        conversation_id = _conversation_id(data)
        if not conversation_id:
            connection.offer(events.error("invalid_input", "conversation_id is required"))
            return
        if event == events.ROOM_JOIN:
            await room_router.subscribe(connection, conversation_id)
            connection.offer(events.room_joined(conversation_id))
        else:
            await room_router.unsubscribe(connection, conversation_id)
            connection.offer(events.room_left(conversation_id))
        return

    if event == events.AUTH:
        connection.offer(events.error("invalid_input", "Already authenticated"))
        return

    connection.offer(events.error("invalid_input", f"Unknown event: {event}"))

async def _next_text(websocket: WebSocket, connection: Connection, dropped: asyncio.Future, timeout: float) -> str | None:
    """Wait for the next client frame. Returns None for a binary frame.

    Raises WebSocketDisconnect when the client leaves, _CloseConnection when the
    router dropped this connection, and TimeoutError after ``timeout`` of silence.
    """
    receive = asyncio.ensure_future(websocket.receive())
    done, _ = await asyncio.wait({receive, dropped}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    if receive not in done:
        receive.cancel()
        if dropped in done:
            logger.info("Connection %s was dropped by the room router, closing", connection.id)
            raise _CloseConnection(status.WS_1013_TRY_AGAIN_LATER, "Evicted: too slow to receive")
        raise asyncio.TimeoutError()

    message = receive.result()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE), message.get("reason"))
    return message.get("text")


@router.websocket("/ws")
async def live_channel(websocket: WebSocket):
    settings = get_settings()
    room_router = get_room_router(websocket)

    await websocket.accept()
    connection = Connection(websocket, settings.WS_OUTBOX_SIZE)
    pump = asyncio.create_task(connection.pump())
    dropped = asyncio.ensure_future(connection.dropped.wait())
    close_code, close_reason = None, ""

    try:
        token = handshake_token(websocket)
        if token:
            _authenticate(connection, token)

        while True:
            raw = await _next_text(websocket, connection, dropped, settings.WS_HEARTBEAT_SECONDS)
            if raw is None:
                connection.offer(events.error("invalid_input", "Frames must be JSON text"))
                continue
            try:
                frame = json.loads(raw)
            except ValueError:
                connection.offer(events.error("invalid_input", "Frames must be JSON"))
                continue
            if not isinstance(frame, dict):
                connection.offer(events.error("invalid_input", "Frames must be JSON objects"))
                continue

            try:
                await _handle_frame(websocket, connection, frame)
            except AppError as exc:
                connection.offer(events.error(exc.error_type, exc.message))

    except asyncio.TimeoutError:
        logger.info("Connection %s silent for %.0fs, evicting", connection.id, settings.WS_HEARTBEAT_SECONDS)
        close_code, close_reason = status.WS_1001_GOING_AWAY, "Heartbeat timeout"
    except _CloseConnection as exc:
        close_code, close_reason = exc.code, exc.reason
    except WebSocketDisconnect:
        logger.info("Connection %s disconnected", connection.id)
    finally:
        dropped.cancel()
        await room_router.disconnect(connection)
        if close_code is not None and not await connection.flush(CLOSE_FLUSH_SECONDS):
            logger.warning("Connection %s closed with undelivered frames", connection.id)
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump

    if close_code is not None:
        # The peer may already be gone; the close frame is best effort.
        with contextlib.suppress(WebSocketDisconnect, RuntimeError, OSError):
            await websocket.close(code=close_code, reason=close_reason)
