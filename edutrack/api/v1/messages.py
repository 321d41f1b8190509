"""Message API endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from edutrack.api.deps import get_current_user
from edutrack.api.v1.conversations import get_messaging_service
from edutrack.core.config import settings
from edutrack.schemas.common import ApiResponse, PaginatedResponse, Principal
from edutrack.schemas.message import MessageOut, MessageStats, MessageUpdate
from edutrack.services.messaging_service import MessagingService

router = APIRouter()


@router.get("/search", response_model=PaginatedResponse[MessageOut])
async def search_messages(
    query: str = Query(..., min_length=1),
    conversation_id: Optional[str] = Query(None, alias="conversationId"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    """Case-insensitive search over the caller's conversations."""
    messages, total = await service.search_messages(
        current_user, query, conversation_id=conversation_id, page=page, limit=limit
    )
    return PaginatedResponse[MessageOut].build(
        [MessageOut.from_model(m) for m in messages],
        page,
        limit,
        total,
        message="Search results retrieved successfully",
    )


@router.get("/stats", response_model=ApiResponse[MessageStats])
async def get_message_stats(
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    stats = await service.get_stats(current_user)
    return ApiResponse[MessageStats](message="Message statistics retrieved successfully", data=stats)


@router.put("/{message_id}", response_model=ApiResponse[MessageOut])
async def edit_message(
    message_id: str,
    payload: MessageUpdate,
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    message = await service.edit_message(current_user, message_id, payload.content)
    return ApiResponse[MessageOut](message="Message updated successfully", data=MessageOut.from_model(message))


@router.delete("/{message_id}", response_model=ApiResponse[None])
async def delete_message(
    message_id: str,
    current_user: Principal = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
) -> Any:
    await service.delete_message(current_user, message_id)
    return ApiResponse[None](message="Message deleted successfully")
