"""Schemas for messages."""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from edutrack.models.message import Message, MessageType
from edutrack.schemas.common import CamelModel


class Attachment(CamelModel):
    name: str = Field(..., max_length=255)
    url: str = Field(..., max_length=2048)
    size: Optional[int] = Field(default=None, ge=0)
    type: Optional[str] = Field(default=None, max_length=100)


class MessageCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=5000)
    type: MessageType = MessageType.TEXT
    attachments: List[Attachment] = Field(default_factory=list)


class MessageUpdate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=5000)


class SenderOut(CamelModel):
    user_id: str
    user_type: str
    name: str
    role: str


class ReadReceiptOut(CamelModel):
    user_id: str
    user_type: str
    read_at: datetime


class MessageOut(CamelModel):
    id: str
    conversation_id: str
    sender: SenderOut
    content: str
    type: str
    attachments: List[Attachment]
    read_by: List[ReadReceiptOut]
    edited: bool
    edited_at: Optional[datetime] = None
    deleted: bool
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, message: Message) -> "MessageOut":
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender=SenderOut(
                user_id=message.sender_id,
                user_type=message.sender_type,
                name=message.sender_name,
                role=message.sender_role,
            ),
            content=message.content,
            type=message.message_type,
            attachments=message.attachments or [],
            read_by=[ReadReceiptOut.model_validate(r) for r in message.read_by],
            edited=message.edited,
            edited_at=message.edited_at,
            deleted=message.deleted,
            deleted_at=message.deleted_at,
            created_at=message.created_at,
            updated_at=message.updated_at,
        )


class DailyCount(CamelModel):
    date: str
    count: int


class MessageStats(CamelModel):
    daily_stats: List[DailyCount]
    unread_count: int
