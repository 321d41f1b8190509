"""Message and read receipt models."""

import enum
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edutrack.db.base import Base, TimestampMixin, UUID, utcnow


class MessageType(str, enum.Enum):
    """Message type enumeration."""

    TEXT = "text"
    FILE = "file"
    IMAGE = "image"
    NOTIFICATION = "notification"


class Message(Base, TimestampMixin):
    """A message owned by exactly one conversation."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4()))
    conversation_id: Mapped[str] = mapped_column(ForeignKey("conversations.id"), nullable=False, index=True)

    # Sender
    sender_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sender_type: Mapped[str] = mapped_column(String(20))
    sender_name: Mapped[str] = mapped_column(String(255))
    sender_role: Mapped[str] = mapped_column(String(50))

    content: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(String(20), default=MessageType.TEXT.value)
    attachments: Mapped[list] = mapped_column(JSON, default=list)

    edited: Mapped[bool] = mapped_column(Boolean, default=False)
    edited_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    school_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    read_by: Mapped[list["MessageRead"]] = relationship(
        "MessageRead",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def is_read_by(self, user_id: str) -> bool:
        return any(r.user_id == str(user_id) for r in self.read_by)


class MessageRead(Base):
    """Read receipt. The composite key makes receipts a set per message."""

    __tablename__ = "message_reads"

    message_id: Mapped[str] = mapped_column(ForeignKey("messages.id"), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    user_type: Mapped[str] = mapped_column(String(20))
    read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
