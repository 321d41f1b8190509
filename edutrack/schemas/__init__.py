"""Pydantic schemas for request/response validation."""

from edutrack.schemas.common import ApiResponse, ErrorResponse, PaginatedResponse, Pagination, Principal
from edutrack.schemas.conversation import ConversationCreate, ConversationOut, ParticipantIn, ParticipantOut
from edutrack.schemas.message import MessageCreate, MessageOut, MessageStats, MessageUpdate
from edutrack.schemas.notification import (
    BroadcastResult,
    NotificationBroadcast,
    NotificationCreate,
    NotificationResponse,
    NotificationStats,
)
from edutrack.schemas.complaint import ComplaintCreate, ComplaintResponse, ComplaintStatusUpdate

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "PaginatedResponse",
    "Pagination",
    "Principal",
    "ConversationCreate",
    "ConversationOut",
    "ParticipantIn",
    "ParticipantOut",
    "MessageCreate",
    "MessageOut",
    "MessageStats",
    "MessageUpdate",
    "BroadcastResult",
    "NotificationBroadcast",
    "NotificationCreate",
    "NotificationResponse",
    "NotificationStats",
    "ComplaintCreate",
    "ComplaintResponse",
    "ComplaintStatusUpdate",
]
