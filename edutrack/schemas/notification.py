"""Schemas for notification management."""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from edutrack.models.notification import Notification, NotificationPriority, NotificationType
from edutrack.schemas.common import CamelModel


class NotificationBase(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.GENERAL
    priority: NotificationPriority = NotificationPriority.MEDIUM
    action_url: Optional[str] = Field(default=None, max_length=500)
    action_data: Optional[dict] = None


class NotificationCreate(NotificationBase):
    recipient_id: str = Field(..., min_length=1, max_length=64)
    # Checked by the service so broadcast can fail one recipient at a time
    recipient_type: str


class RecipientIn(CamelModel):
    user_id: str = Field(..., max_length=64)
    user_type: str


class NotificationBroadcast(NotificationBase):
    recipients: List[RecipientIn] = Field(..., min_length=1)


class RecipientOut(CamelModel):
    user_id: str
    user_type: str


class NotificationSenderOut(CamelModel):
    user_id: Optional[str] = None
    user_type: Optional[str] = None
    name: Optional[str] = None


class NotificationResponse(CamelModel):
    id: str
    recipient: RecipientOut
    sender: NotificationSenderOut
    title: str
    message: str
    type: str
    priority: str
    read: bool
    read_at: Optional[datetime] = None
    action_url: Optional[str] = None
    action_data: Optional[dict] = None
    expires_at: datetime
    created_at: datetime

    @classmethod
    def from_model(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            recipient=RecipientOut(user_id=notification.recipient_id, user_type=notification.recipient_type),
            sender=NotificationSenderOut(
                user_id=notification.sender_id,
                user_type=notification.sender_type,
                name=notification.sender_name,
            ),
            title=notification.title,
            message=notification.message,
            type=notification.type,
            priority=notification.priority,
            read=notification.read,
            read_at=notification.read_at,
            action_url=notification.action_url,
            action_data=notification.action_data,
            expires_at=notification.expires_at,
            created_at=notification.created_at,
        )


class BroadcastFailure(CamelModel):
    user_id: str
    user_type: str
    reason: str


class BroadcastResult(CamelModel):
    count: int
    notifications: List[NotificationResponse]
    failed: List[BroadcastFailure]


class UnreadCountResponse(CamelModel):
    unread_count: int


class MarkAllReadResponse(CamelModel):
    modified_count: int


class TypeStat(CamelModel):
    type: str
    count: int
    read_count: int
    unread_count: int


class PriorityStat(CamelModel):
    priority: str
    count: int


class NotificationStats(CamelModel):
    type_stats: List[TypeStat]
    priority_stats: List[PriorityStat]
