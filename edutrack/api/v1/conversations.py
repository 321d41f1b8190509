"""Conversation API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from edutrack.api.deps import get_current_user, get_db, get_delivery_channel
from edutrack.core.config import settings
from edutrack.schemas.common import ApiResponse, PaginatedResponse, Principal
from edutrack.schemas.conversation import ConversationCreate, ConversationOut
from edutrack.schemas.message import MessageCreate, MessageOut
from edutrack.services.delivery_channel import DeliveryChannel
from edutrack.services.messaging_service import MessagingService

router = APIRouter()


def get_messaging_service(
    db: AsyncSession = Depends(get_db),
    channel: DeliveryChannel = Depends(get_delivery_channel),
) -> MessagingService:
    return MessagingService(db, channel)


@router.get("", response_model=PaginatedResponse[ConversationOut])
async def list_conversations(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    """List the caller's active conversations with unread counts."""
    rows, total = await service.list_conversations(current_user, page=page, limit=limit)
    items = [ConversationOut.from_model(c, unread_count=unread) for c, unread in rows]
    return PaginatedResponse[ConversationOut].build(
        items, page, limit, total, message="Conversations retrieved successfully"
    )


@router.post("", response_model=ApiResponse[ConversationOut])
async def get_or_create_conversation(
    payload: ConversationCreate,
    response: Response,
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    """Find the conversation with this participant set, or start one."""
    conversation, created = await service.get_or_create_conversation(
        current_user,
        {
            "user_id": payload.participant_id,
            "user_type": payload.participant_type,
            "name": payload.participant_name,
        },
        type=payload.type,
        subject=payload.subject,
        extra_participants=[p.model_dump() for p in payload.participants],
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return ApiResponse[ConversationOut](
        message="Conversation created successfully" if created else "Conversation retrieved successfully",
        data=ConversationOut.from_model(conversation, unread_count=0 if created else None),
    )


@router.delete("/{conversation_id}", response_model=ApiResponse[None])
async def deactivate_conversation(
    conversation_id: str,
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    await service.deactivate_conversation(current_user, conversation_id)
    return ApiResponse[None](message="Conversation archived successfully")


@router.get("/{conversation_id}/messages", response_model=PaginatedResponse[MessageOut])
async def get_messages(
    conversation_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=settings.max_page_size),
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    """Messages in chronological order. Marks them read for the caller."""
    messages, total = await service.get_messages(current_user, conversation_id, page=page, limit=limit)
    return PaginatedResponse[MessageOut].build(
        [MessageOut.from_model(m) for m in messages],
        page,
        limit,
        total,
        message="Messages retrieved successfully",
    )


@router.post(
    "/{conversation_id}/messages",
    response_model=ApiResponse[MessageOut],
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    payload: MessageCreate,
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    message = await service.send_message(
        current_user,
        conversation_id,
        payload.content,
        type=payload.type,
        attachments=[a.model_dump(by_alias=True) for a in payload.attachments],
    )
    return ApiResponse[MessageOut](message="Message sent successfully", data=MessageOut.from_model(message))


@router.put("/{conversation_id}/read", response_model=ApiResponse[dict])
async def mark_conversation_read(
    conversation_id: str,
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    added = await service.mark_as_read(current_user, conversation_id)
    return ApiResponse[dict](message="Messages marked as read", data={"modifiedCount": added})
