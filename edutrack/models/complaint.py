"""Complaint model."""

import enum
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from edutrack.db.base import Base, TimestampMixin, UUID, utcnow
from edutrack.models.notification import NotificationPriority


class ComplaintCategory(str, enum.Enum):
    ACADEMIC = "academic"
    BEHAVIORAL = "behavioral"
    ATTENDANCE = "attendance"
    HOMEWORK = "homework"
    COMMUNICATION = "communication"
    FACILITIES = "facilities"
    OTHER = "other"


class ComplaintStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    REJECTED = "rejected"


RESOLVING_STATUSES = frozenset({ComplaintStatus.RESOLVED.value, ComplaintStatus.CLOSED.value})


class Complaint(Base, TimestampMixin):
    """A complaint filed by a student or parent against a teacher."""

    __tablename__ = "complaints"
    __table_args__ = (
        Index("ix_complaints_teacher_status", "teacher_id", "status"),
        Index("ix_complaints_status_priority", "status", "priority"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4()))

    complainant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    complainant_type: Mapped[str] = mapped_column(String(20))  # student, parent
    complainant_name: Mapped[str] = mapped_column(String(255))

    student_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    teacher_id: Mapped[str] = mapped_column(String(64), nullable=False)
    teacher_name: Mapped[str] = mapped_column(String(255))

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(30), default=ComplaintCategory.OTHER.value)
    priority: Mapped[str] = mapped_column(String(20), default=NotificationPriority.MEDIUM.value)
    status: Mapped[str] = mapped_column(String(20), default=ComplaintStatus.OPEN.value)

    conversation_id: Mapped[Optional[str]] = mapped_column(ForeignKey("conversations.id"), nullable=True)
    attachments: Mapped[list] = mapped_column(JSON, default=list)

    resolution_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    last_activity_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    school_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
