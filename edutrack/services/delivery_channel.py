"""Room-based publish/subscribe over WebSocket connections.

Rooms are plain strings (``user_{id}``, ``conversation_{id}``). Delivery is
fire-and-forget: only sockets subscribed at publish time receive the event and
nothing is replayed for clients that reconnect later.
"""

import asyncio
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from edutrack.core.logging import get_logger

logger = get_logger(__name__)


def user_room(user_id: str) -> str:
    return f"user_{user_id}"


def conversation_room(conversation_id: str) -> str:
    return f"conversation_{conversation_id}"


class DeliveryChannel:
    """Subscription table plus best-effort event fan-out."""

    def __init__(self):
        # room name -> sockets subscribed to it
        self.rooms: Dict[str, Set[WebSocket]] = {}
        # socket -> rooms it joined, used to clean up on disconnect
        self.memberships: Dict[WebSocket, Set[str]] = {}
        self._pending: Set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket, user_id: str):
        """Accept the connection and subscribe it to its identity room."""
        await websocket.accept()
        self.memberships.setdefault(websocket, set())
        self.join(websocket, user_room(user_id))
        logger.info(f"User {user_id} connected. Open sockets: {len(self.memberships)}")

    def disconnect(self, websocket: WebSocket):
        """Drop a socket from every room it joined."""
        for room in self.memberships.pop(websocket, set()):
            members = self.rooms.get(room)
            if members is None:
                continue
            members.discard(websocket)
            if not members:
                del self.rooms[room]

    def join(self, websocket: WebSocket, room: str):
        self.rooms.setdefault(room, set()).add(websocket)
        self.memberships.setdefault(websocket, set()).add(room)
        logger.debug(f"Socket joined {room} (members: {len(self.rooms[room])})")

    def leave(self, websocket: WebSocket, room: str):
        members = self.rooms.get(room)
        if members is not None:
            members.discard(websocket)
            if not members:
                del self.rooms[room]
        if websocket in self.memberships:
            self.memberships[websocket].discard(room)

    def members(self, room: str) -> Set[WebSocket]:
        return set(self.rooms.get(room, ()))

    async def send_personal_message(self, websocket: WebSocket, event: str, data: Any = None):
        """Send one event to a single socket."""
        try:
            await websocket.send_json({"event": event, "data": jsonable_encoder(data)})
        except Exception as e:
            logger.warning(f"Error sending {event} to socket: {e}")
            self.disconnect(websocket)

    async def emit(
        self,
        room: str,
        event: str,
        data: Any = None,
        exclude: Optional[WebSocket] = None,
    ) -> int:
        """Send an event to every current member of a room. Returns the send count."""
        frame = {"event": event, "data": jsonable_encoder(data)}
        sent_count = 0
        for websocket in self.members(room):
            if websocket is exclude:
                continue
            try:
                await websocket.send_json(frame)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Dropping dead socket in {room}: {e}")
                self.disconnect(websocket)
        logger.debug(f"Emitted {event} to {room}: {sent_count} socket(s)")
        return sent_count

    def publish(
        self,
        room: str,
        event: str,
        data: Any = None,
        exclude: Optional[WebSocket] = None,
    ) -> None:
        """Schedule ``emit`` without waiting for it."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, dropping {event} for {room}")
            return
        task = loop.create_task(self.emit(room, event, data, exclude=exclude))
        self._pending.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Event publication failed: {task.exception()}")

    async def flush(self) -> None:
        """Wait for every scheduled publication to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


delivery_channel = DeliveryChannel()
