"""Conversation and participant models."""

import enum
from datetime import datetime
from typing import Iterable, Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edutrack.db.base import Base, TimestampMixin, UUID, utcnow


class ConversationType(str, enum.Enum):
    """Conversation type enumeration."""

    DIRECT = "direct"
    GROUP = "group"
    COMPLAINT = "complaint"


def make_participant_key(user_ids: Iterable[str]) -> str:
    """Order-independent key for a participant set."""
    return ",".join(sorted(set(str(uid) for uid in user_ids)))


class Conversation(Base, TimestampMixin):
    """A durable grouping of identities exchanging messages."""

    __tablename__ = "conversations"
    __table_args__ = (
        # One direct conversation per pair, complaint threads may repeat
        Index(
            "uq_conversations_direct_participants",
            "type",
            "participant_key",
            unique=True,
            postgresql_where=text("type = 'direct'"),
            sqlite_where=text("type = 'direct'"),
        ),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4()))
    type: Mapped[str] = mapped_column(String(20), default=ConversationType.DIRECT.value, index=True)
    subject: Mapped[str] = mapped_column(String(255), default="")
    participant_key: Mapped[str] = mapped_column(String(1024), index=True)

    # Weak reference, messages are never hard-deleted so no FK is needed
    last_message_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    last_message_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    school_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    participants: Mapped[list["ConversationParticipant"]] = relationship(
        "ConversationParticipant",
        back_populates="conversation",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def has_participant(self, user_id: str) -> bool:
        return any(p.user_id == str(user_id) for p in self.participants)

    def other_participants(self, user_id: str) -> list["ConversationParticipant"]:
        return [p for p in self.participants if p.user_id != str(user_id)]


class ConversationParticipant(Base, TimestampMixin):
    """An identity attached to a conversation, unique per user."""

    __tablename__ = "conversation_participants"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participant"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4()))
    conversation_id: Mapped[str] = mapped_column(ForeignKey("conversations.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_type: Mapped[str] = mapped_column(String(20))  # admin, teacher, student, parent
    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(50))

    conversation: Mapped["Conversation"] = relationship("Conversation", back_populates="participants")
