"""Notification API endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from edutrack.api.deps import get_current_admin, get_current_user, get_db, get_delivery_channel
from edutrack.core.config import settings
from edutrack.models.notification import NotificationPriority, NotificationType
from edutrack.schemas.common import ApiResponse, PaginatedResponse, Principal
from edutrack.schemas.notification import (
    BroadcastResult,
    MarkAllReadResponse,
    NotificationBroadcast,
    NotificationCreate,
    NotificationResponse,
    NotificationStats,
    UnreadCountResponse,
)
from edutrack.services.delivery_channel import DeliveryChannel
from edutrack.services.notification_service import NotificationService

router = APIRouter()


def get_notification_service(
    db: AsyncSession = Depends(get_db),
    channel: DeliveryChannel = Depends(get_delivery_channel),
) -> NotificationService:
    return NotificationService(db, channel)


@router.get("", response_model=PaginatedResponse[NotificationResponse])
async def list_notifications(
    type: Optional[NotificationType] = Query(None),
    priority: Optional[NotificationPriority] = Query(None),
    read: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: Principal = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> Any:
    """Get current user's unexpired notifications, newest first."""
    items, total = await service.list_notifications(
        current_user,
        type=type.value if type else None,
        priority=priority.value if priority else None,
        read=read,
        page=page,
        limit=limit,
    )
    return PaginatedResponse[NotificationResponse].build(
        [NotificationResponse.from_model(n) for n in items],
        page,
        limit,
        total,
        message="Notifications retrieved successfully",
    )


@router.put("/read-all", response_model=ApiResponse[MarkAllReadResponse])
async def mark_all_read(
    current_user: Principal = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> Any:
    count = await service.mark_all_as_read(current_user)
    return ApiResponse[MarkAllReadResponse](
        message="All notifications marked as read",
        data=MarkAllReadResponse(modified_count=count),
    )


@router.get("/unread-count", response_model=ApiResponse[UnreadCountResponse])
async def get_unread_count(
    current_user: Principal = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> Any:
    count = await service.get_unread_count(current_user)
    return ApiResponse[UnreadCountResponse](
        message="Unread count retrieved successfully",
        data=UnreadCountResponse(unread_count=count),
    )


@router.get("/stats", response_model=ApiResponse[NotificationStats])
async def get_notification_stats(
    current_user: Principal = Depends(get_current_admin),
    service: NotificationService = Depends(get_notification_service),
) -> Any:
    """Per-type and per-priority counts for the admin's school."""
    stats = await service.get_stats(current_user)
    return ApiResponse[NotificationStats](message="Notification statistics retrieved successfully", data=stats)


@router.put("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_read(
    notification_id: str,
    current_user: Principal = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> Any:
    notification = await service.mark_as_read(current_user, notification_id)
    return ApiResponse[NotificationResponse](
        message="Notification marked as read",
        data=NotificationResponse.from_model(notification),
    )


@router.delete("/{notification_id}", response_model=ApiResponse[None])
async def delete_notification(
    notification_id: str,
    current_user: Principal = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> Any:
    await service.delete_notification(current_user, notification_id)
    return ApiResponse[None](message="Notification deleted successfully")


@router.post("", response_model=ApiResponse[NotificationResponse], status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    current_user: Principal = Depends(get_current_admin),
    service: NotificationService = Depends(get_notification_service),
) -> Any:
    """Create a notification for a single recipient."""
    notification = await service.create_notification(
        recipient_id=payload.recipient_id,
        recipient_type=payload.recipient_type,
        sender_id=current_user.id,
        sender_type=current_user.role,
        sender_name=current_user.name,
        title=payload.title,
        message=payload.message,
        type=payload.type,
        priority=payload.priority,
        action_url=payload.action_url,
        action_data=payload.action_data,
        school_id=current_user.school_id,
    )
    return ApiResponse[NotificationResponse](
        message="Notification created successfully",
        data=NotificationResponse.from_model(notification),
    )


@router.post("/broadcast", response_model=ApiResponse[BroadcastResult], status_code=status.HTTP_201_CREATED)
async def broadcast_notification(
    payload: NotificationBroadcast,
    current_user: Principal = Depends(get_current_admin),
    service: NotificationService = Depends(get_notification_service),
) -> Any:
    """Create one notification per recipient. Failures are reported per recipient."""
    result = await service.broadcast_notification(
        current_user,
        [r.model_dump() for r in payload.recipients],
        title=payload.title,
        message=payload.message,
        type=payload.type,
        priority=payload.priority,
        action_url=payload.action_url,
        action_data=payload.action_data,
    )
    return ApiResponse[BroadcastResult](
        message=f"Notification sent to {result.count} recipient(s)",
        data=result,
    )
