"""Schemas for conversations."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from edutrack.models.conversation import Conversation, ConversationType
from edutrack.models.identity import UserType
from edutrack.schemas.common import CamelModel


class ParticipantIn(CamelModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    user_type: UserType
    name: str = Field(..., min_length=1, max_length=255)
    role: Optional[str] = None


class ParticipantOut(CamelModel):
    user_id: str
    user_type: str
    name: str
    role: str


class ConversationCreate(CamelModel):
    participant_id: str = Field(..., min_length=1, max_length=64)
    participant_type: UserType
    participant_name: str = Field(..., min_length=1, max_length=255)
    type: ConversationType = ConversationType.DIRECT
    subject: str = Field(default="", max_length=255)
    # Additional members, only meaningful for group conversations
    participants: List[ParticipantIn] = Field(default_factory=list)


class ConversationOut(CamelModel):
    id: str
    type: str
    subject: str
    participants: List[ParticipantOut]
    last_message_id: Optional[str] = None
    last_message_at: datetime
    is_active: bool
    created_at: datetime
    updated_at: datetime
    unread_count: Optional[int] = None

    @classmethod
    def from_model(cls, conversation: Conversation, unread_count: Optional[int] = None) -> "ConversationOut":
        out = cls.model_validate(conversation)
        out.unread_count = unread_count
        return out
