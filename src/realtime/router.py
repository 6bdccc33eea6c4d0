"""Room router: live subscriber sets per conversation and message fan-out.

A room is the set of live connections subscribed to one conversation. The
router owns the room map; connections only reach it through subscribe,
unsubscribe, disconnect and fanout. Joining a room is authorized against the
participant relation on every call, never against the client-supplied id
alone.

Delivery is fire-and-forget: fanout enqueues on each connection's bounded
outbox and returns. A connection whose outbox is full or closed is evicted
from every room and marked dropped; its socket owner then closes the socket.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable

from fastapi import WebSocket
from starlette.requests import HTTPConnection
from starlette.websockets import WebSocketDisconnect

from src.conversations import repository as conversations
from src.db.client import Database
from src.utils.exceptions import Forbidden, Unauthenticated

logger = logging.getLogger(__name__)

MembershipCheck = Callable[[str, str], Awaitable[bool]]


class Connection:
    """One live socket. Starts unauthenticated; all outbound frames go through the outbox."""

    def __init__(self, websocket: WebSocket | None = None, outbox_size: int = 100):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.user_id: str | None = None
        self.rooms: set[str] = set()
        self.outbox: asyncio.Queue[dict] = asyncio.Queue(maxsize=outbox_size)
        self.closed = False
        # Set once the router drops the connection; the socket owner must close it.
        self.dropped = asyncio.Event()

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    def authenticate(self, user_id: str) -> None:
        self.user_id = user_id

    def close(self) -> None:
        self.closed = True
        self.dropped.set()

    def offer(self, frame: dict) -> bool:
        """Queue a frame without waiting. False when the connection cannot take it."""
        if self.closed:
            return False
        try:
            self.outbox.put_nowait(frame)
        except asyncio.QueueFull:
            return False
        return True

    async def pump(self) -> None:
        """Drain the outbox into the socket until it closes."""
        try:
            while True:
                frame = await self.outbox.get()
                try:
                    await self.websocket.send_json(frame)
                finally:
                    self.outbox.task_done()
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.debug("Connection %s stopped sending: %s", self.id, exc.__class__.__name__)
            self.close()

    async def flush(self, timeout: float) -> bool:
        """Wait up to ``timeout`` for queued frames to be sent. False if some were left."""
        try:
            await asyncio.wait_for(self.outbox.join(), timeout)
        except asyncio.TimeoutError:
            return False
        return True


class RoomRouter:
    def __init__(self, is_participant: MembershipCheck):
        self._is_participant = is_participant
        self._rooms: dict[str, set[Connection]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, connection: Connection, conversation_id: str) -> bool:
        """Join a room. Returns False if the connection was already in it."""
        if not connection.authenticated:
            raise Unauthenticated()
        if not await self._is_participant(conversation_id, connection.user_id):
            raise Forbidden("You are not a participant of this conversation")

        async with self._lock:
            if connection.closed:
                return False
            room = self._rooms.setdefault(conversation_id, set())
            if connection in room:
                return False
            room.add(connection)
            connection.rooms.add(conversation_id)
        logger.info("Connection %s (user %s) joined room %s", connection.id, connection.user_id, conversation_id)
        return True

    async def unsubscribe(self, connection: Connection, conversation_id: str) -> None:
        async with self._lock:
            self._leave(connection, conversation_id)

    async def disconnect(self, connection: Connection) -> None:
        async with self._lock:
            connection.close()
            for conversation_id in list(connection.rooms):
                self._leave(connection, conversation_id)

    async def fanout(self, conversation_id: str, frame: dict) -> int:
        """Offer a frame to every current subscriber of the room. Returns how many accepted it."""
        async with self._lock:
            subscribers = list(self._rooms.get(conversation_id, ()))

        delivered = 0
        stale: list[Connection] = []
        for connection in subscribers:
            if connection.offer(frame):
                delivered += 1
            else:
                stale.append(connection)

        for connection in stale:
            logger.warning("Evicting connection %s: outbox full or closed", connection.id)
            await self.disconnect(connection)
        return delivered

    def subscribers(self, conversation_id: str) -> list[Connection]:
        return list(self._rooms.get(conversation_id, ()))

    def subscriber_count(self, conversation_id: str) -> int:
        return len(self._rooms.get(conversation_id, ()))

    def _leave(self, connection: Connection, conversation_id: str) -> None:
        connection.rooms.discard(conversation_id)
        room = self._rooms.get(conversation_id)
        if room is None:
            return
        room.discard(connection)
        if not room:
            del self._rooms[conversation_id]


def database_membership(database: Database) -> MembershipCheck:
    """Membership check that opens a fresh session per call."""

    async def is_participant(conversation_id: str, user_id: str) -> bool:
        async with database.session() as db:
            return await conversations.is_participant(db, conversation_id, user_id)

    return is_participant


def get_room_router(conn: HTTPConnection) -> RoomRouter:
    return conn.app.state.room_router
