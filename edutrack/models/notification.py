"""Notification model."""

import enum
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from edutrack.core.config import settings
from edutrack.db.base import Base, TimestampMixin, UUID, utcnow


class NotificationType(str, enum.Enum):
    """Notification type enumeration."""

    GRADE_UPDATE = "grade_update"
    ATTENDANCE_ALERT = "attendance_alert"
    EXAM_SCHEDULE = "exam_schedule"
    COMPLAINT_UPDATE = "complaint_update"
    MESSAGE_RECEIVED = "message_received"
    FEE_REMINDER = "fee_reminder"
    SYSTEM_UPDATE = "system_update"
    ANNOUNCEMENT = "announcement"
    PARENT_MEETING = "parent_meeting"
    GENERAL = "general"


class NotificationPriority(str, enum.Enum):
    """Priority enumeration, shared with complaints."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


def default_expiry() -> datetime:
    return utcnow() + timedelta(days=settings.notification_ttl_days)


class Notification(Base, TimestampMixin):
    """Per-recipient notice with a time-to-live."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
        Index("ix_notifications_read_expires", "read", "expires_at"),
        Index("ix_notifications_type_priority", "type", "priority"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Recipient
    recipient_id: Mapped[str] = mapped_column(String(64), nullable=False)
    recipient_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Sender, user id is empty for system notifications
    sender_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    sender_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    sender_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), default=NotificationType.GENERAL.value)
    priority: Mapped[str] = mapped_column(String(20), default=NotificationPriority.MEDIUM.value)

    read: Mapped[bool] = mapped_column(Boolean, default=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Optional deep link
    action_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    action_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=default_expiry, index=True)
    school_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
