"""Complaint API endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from edutrack.api.deps import get_current_user, get_db, get_delivery_channel
from edutrack.core.config import settings
from edutrack.models.complaint import ComplaintCategory, ComplaintStatus
from edutrack.models.notification import NotificationPriority
from edutrack.schemas.common import ApiResponse, PaginatedResponse, Principal
from edutrack.schemas.complaint import ComplaintCreate, ComplaintResponse, ComplaintStatusUpdate
from edutrack.services.complaint_service import ComplaintService
from edutrack.services.delivery_channel import DeliveryChannel

router = APIRouter()


def get_complaint_service(
    db: AsyncSession = Depends(get_db),
    channel: DeliveryChannel = Depends(get_delivery_channel),
) -> ComplaintService:
    return ComplaintService(db, channel)


@router.post("", response_model=ApiResponse[ComplaintResponse], status_code=status.HTTP_201_CREATED)
async def create_complaint(
    payload: ComplaintCreate,
    current_user: Principal = Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
) -> Any:
    complaint = await service.create_complaint(
        current_user,
        student_id=payload.student_id,
        teacher_id=payload.teacher_id,
        teacher_name=payload.teacher_name,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        priority=payload.priority,
        attachments=[a.model_dump(by_alias=True) for a in payload.attachments],
    )
    return ApiResponse[ComplaintResponse](
        message="Complaint created successfully",
        data=ComplaintResponse.from_model(complaint),
    )


@router.get("", response_model=PaginatedResponse[ComplaintResponse])
async def list_complaints(
    status: Optional[ComplaintStatus] = Query(None),
    category: Optional[ComplaintCategory] = Query(None),
    priority: Optional[NotificationPriority] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: Principal = Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
) -> Any:
    """Complaints visible to the caller's role."""
    items, total = await service.list_complaints(
        current_user,
        status=status.value if status else None,
        category=category.value if category else None,
        priority=priority.value if priority else None,
        page=page,
        limit=limit,
    )
    return PaginatedResponse[ComplaintResponse].build(
        [ComplaintResponse.from_model(c) for c in items],
        page,
        limit,
        total,
        message="Complaints retrieved successfully",
    )


@router.put("/{complaint_id}/status", response_model=ApiResponse[ComplaintResponse])
async def update_complaint_status(
    complaint_id: str,
    payload: ComplaintStatusUpdate,
    current_user: Principal = Depends(get_current_user),
    service: ComplaintService = Depends(get_complaint_service),
) -> Any:
    complaint = await service.update_status(
        current_user, complaint_id, payload.status, resolution_note=payload.resolution_note
    )
    return ApiResponse[ComplaintResponse](
        message="Complaint updated successfully",
        data=ComplaintResponse.from_model(complaint),
    )
