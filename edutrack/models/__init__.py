"""SQLAlchemy models."""

from edutrack.models.identity import UserType, SenderType
from edutrack.models.conversation import Conversation, ConversationParticipant, ConversationType
from edutrack.models.message import Message, MessageRead, MessageType
from edutrack.models.notification import Notification, NotificationType, NotificationPriority
from edutrack.models.complaint import Complaint, ComplaintCategory, ComplaintStatus

__all__ = [
    "UserType",
    "SenderType",
    "Conversation",
    "ConversationParticipant",
    "ConversationType",
    "Message",
    "MessageRead",
    "MessageType",
    "Notification",
    "NotificationType",
    "NotificationPriority",
    "Complaint",
    "ComplaintCategory",
    "ComplaintStatus",
]
