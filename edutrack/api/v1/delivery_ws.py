from typing import Any, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from edutrack.api.deps import get_current_ws_user, get_db, get_delivery_channel
from edutrack.core.exceptions import AppError
from edutrack.core.logging import get_logger
from edutrack.schemas.common import Principal
from edutrack.services.delivery_channel import DeliveryChannel, conversation_room, user_room
from edutrack.services.messaging_service import MessagingService

logger = get_logger(__name__)

router = APIRouter()


def _conversation_id(data: Any) -> Optional[str]:
    # Clients send either the bare id or {"conversationId": ...}
    if isinstance(data, dict):
        data = data.get("conversationId")
    return str(data) if data else None


async def handle_client_event(
    channel: DeliveryChannel,
    websocket: WebSocket,
    principal: Principal,
    event: Optional[str],
    data: Any,
    db: AsyncSession,
) -> None:
    """Apply one client frame to the subscription table."""
    if event == "ping":
        await channel.send_personal_message(websocket, "pong")
        return

    if event == "join":
        # The identity room is joined on connect, only the caller's own id is honoured
        user_id = data.get("userId") if isinstance(data, dict) else data
        if user_id and str(user_id) != principal.id:
            logger.warning(f"User {principal.id} tried to join room of {user_id}")
            return
        channel.join(websocket, user_room(principal.id))
        return

    if event in ("joinConversation", "leaveConversation", "typing", "stopTyping"):
        conversation_id = _conversation_id(data)
        if not conversation_id:
            await channel.send_personal_message(websocket, "error", {"message": "conversationId required"})
            return

        room = conversation_room(conversation_id)
        if event == "leaveConversation":
            channel.leave(websocket, room)
            return

        if event == "joinConversation":
            try:
                await MessagingService(db).get_conversation_for(principal, conversation_id)
            except AppError as e:
                await channel.send_personal_message(websocket, "error", {"message": e.message})
                return
            finally:
                # The session lives as long as the socket, end the read-only transaction
                await db.commit()
            channel.join(websocket, room)
            return

        if websocket not in channel.members(room):
            return
        await channel.emit(
            room,
            "typing",
            {
                "conversationId": conversation_id,
                "userId": principal.id,
                "name": principal.name,
                "isTyping": event == "typing",
            },
            exclude=websocket,
        )
        return

    await channel.send_personal_message(websocket, "error", {"message": f"Unknown event: {event}"})


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    principal: Optional[Principal] = Depends(get_current_ws_user),
    db: AsyncSession = Depends(get_db),
    channel: DeliveryChannel = Depends(get_delivery_channel),
):
    """
    Real-time delivery channel.
    Frames in both directions are {"event": ..., "data": ...}.
    """
    if principal is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await channel.connect(websocket, principal.id)
    try:
        while True:
            frame = await websocket.receive_json()
            if not isinstance(frame, dict):
                await channel.send_personal_message(websocket, "error", {"message": "Malformed frame"})
                continue
            await handle_client_event(channel, websocket, principal, frame.get("event"), frame.get("data"), db)
    except WebSocketDisconnect:
        logger.info(f"User {principal.id} disconnected")
    except ValueError as e:
        logger.warning(f"Closing socket of user {principal.id}: {e}")
        await websocket.close(code=status.WS_1003_UNSUPPORTED_DATA)
    finally:
        channel.disconnect(websocket)
