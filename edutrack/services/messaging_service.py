from typing import Any, Iterable, Optional
from datetime import timedelta

from sqlalchemy import DateTime, String, exists, func, literal, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edutrack.core.config import settings
from edutrack.core.exceptions import NotFoundOrForbidden, ValidationError
from edutrack.core.logging import get_logger
from edutrack.db.base import utcnow
from edutrack.db.repositories.base import BaseRepository
from edutrack.models.conversation import (
    Conversation,
    ConversationParticipant,
    ConversationType,
    make_participant_key,
)
from edutrack.models.message import Message, MessageRead, MessageType
from edutrack.models.notification import NotificationPriority, NotificationType
from edutrack.schemas.common import Principal, page_offset
from edutrack.schemas.message import DailyCount, MessageOut, MessageStats
from edutrack.services.delivery_channel import DeliveryChannel, conversation_room, user_room
from edutrack.services.notification_service import NotificationService

logger = get_logger(__name__)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def message_preview(content: str, length: Optional[int] = None) -> str:
    length = length or settings.message_preview_length
    return content[:length] + "..." if len(content) > length else content


class MessagingService:
    def __init__(self, db: AsyncSession, channel: Optional[DeliveryChannel] = None):
        self.db = db
        self.channel = channel
        self.conversations = BaseRepository(Conversation, db)
        self.messages = BaseRepository(Message, db)

    def _participating(self, user_id: str):
        """Subquery of conversation ids the user is a participant of."""
        return select(ConversationParticipant.conversation_id).where(
            ConversationParticipant.user_id == str(user_id)
        )

    def _unread_clause(self, user_id: str):
        receipt = exists().where(MessageRead.message_id == Message.id, MessageRead.user_id == user_id)
        return (
            Message.sender_id != user_id,
            Message.deleted == False,  # noqa: E712
            ~receipt,
        )

    async def get_conversation_for(self, requester: Principal, conversation_id: str) -> Conversation:
        """
        Load a conversation the requester participates in.
        Missing and inaccessible conversations are indistinguishable.
        """
        result = await self.db.execute(
            select(Conversation).where(
                Conversation.id == conversation_id,
                Conversation.id.in_(self._participating(requester.id)),
            )
        )
        conversation = result.scalar_one_or_none()
        if conversation is None:
            raise NotFoundOrForbidden("Conversation not found")
        return conversation

    async def create_conversation(
        self,
        requester: Principal,
        participants: Iterable[dict],
        type: Any = ConversationType.DIRECT,
        subject: str = "",
        commit: bool = True,
    ) -> Conversation:
        """Always create a new conversation with the requester plus ``participants``."""
        members = {
            requester.id: {
                "user_id": requester.id,
                "user_type": requester.role.value,
                "name": requester.name,
                "role": requester.role.value,
            }
        }
        for p in participants:
            user_id = str(p["user_id"])
            if user_id in members:
                continue
            user_type = getattr(p["user_type"], "value", p["user_type"])
            members[user_id] = {
                "user_id": user_id,
                "user_type": user_type,
                "name": p["name"],
                "role": p.get("role") or user_type,
            }
        if len(members) < 2:
            raise ValidationError("A conversation needs at least one other participant")

        conversation = Conversation(
            type=ConversationType(type).value,
            subject=subject or "",
            participant_key=make_participant_key(members),
            school_id=requester.school_id,
            is_active=True,
            participants=[ConversationParticipant(**m) for m in members.values()],
        )
        self.db.add(conversation)
        await self.db.flush()
        if commit:
            await self.db.commit()
        logger.info(
            f"Created {conversation.type} conversation {conversation.id} "
            f"with {len(members)} participants"
        )
        return conversation

    async def get_or_create_conversation(
        self,
        requester: Principal,
        participant: dict,
        type: Any = ConversationType.DIRECT,
        subject: str = "",
        extra_participants: Iterable[dict] = (),
    ) -> tuple[Conversation, bool]:
        """
        Reuse the conversation of ``type`` whose participant set is exactly
        the requested one, otherwise create it. Returns (conversation, created).
        """
        if str(participant["user_id"]) == requester.id:
            raise ValidationError("Cannot start a conversation with yourself")
        type = ConversationType(type)
        others = [participant]
        if type == ConversationType.GROUP:
            others.extend(extra_participants)

        key = make_participant_key([requester.id] + [str(p["user_id"]) for p in others])
        conversation = await self._find_conversation(type, key)
        if conversation is None:
            try:
                conversation = await self.create_conversation(requester, others, type=type, subject=subject)
                return conversation, True
            except IntegrityError:
                # A concurrent request created the same direct conversation first
                await self.db.rollback()
                conversation = await self._find_conversation(type, key)
                if conversation is None:
                    raise

        if not conversation.is_active:
            conversation.is_active = True
            await self.db.commit()
        return conversation, False

    async def _find_conversation(self, type: ConversationType, key: str) -> Optional[Conversation]:
        result = await self.db.execute(
            select(Conversation)
            .where(Conversation.type == type.value, Conversation.participant_key == key)
            .order_by(Conversation.last_message_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_conversations(
        self, requester: Principal, page: int = 1, limit: int = 20
    ) -> tuple[list[tuple[Conversation, int]], int]:
        """Active conversations, most recent activity first, with unread counts."""
        query = (
            select(Conversation)
            .where(
                Conversation.id.in_(self._participating(requester.id)),
                Conversation.is_active == True,  # noqa: E712
            )
            .order_by(Conversation.last_message_at.desc())
        )
        items, total = await self.conversations.paginate(query, skip=page_offset(page, limit), limit=limit)
        counts = await self.unread_counts(requester.id, [c.id for c in items])
        return [(c, counts.get(c.id, 0)) for c in items], total

    async def unread_counts(self, user_id: str, conversation_ids: list[str]) -> dict[str, int]:
        if not conversation_ids:
            return {}
        result = await self.db.execute(
            select(Message.conversation_id, func.count(Message.id))
            .where(Message.conversation_id.in_(conversation_ids), *self._unread_clause(user_id))
            .group_by(Message.conversation_id)
        )
        return {conversation_id: count for conversation_id, count in result.all()}

    async def _insert_receipts(self, requester: Principal, conversation_id: str) -> int:
        """Add the requester's receipt to every unread message from others."""
        now = utcnow()
        source = select(
            Message.id,
            literal(requester.id, String),
            literal(requester.role.value, String),
            literal(now, DateTime(timezone=True)),
        ).where(Message.conversation_id == conversation_id, *self._unread_clause(requester.id))

        insert = pg_insert if self.db.get_bind().dialect.name == "postgresql" else sqlite_insert
        stmt = (
            insert(MessageRead)
            .from_select(["message_id", "user_id", "user_type", "read_at"], source)
            .on_conflict_do_nothing(index_elements=["message_id", "user_id"])
        )
        result = await self.db.execute(stmt)
        return max(result.rowcount or 0, 0)

    async def mark_as_read(self, requester: Principal, conversation_id: str) -> int:
        await self.get_conversation_for(requester, conversation_id)
        added = await self._insert_receipts(requester, conversation_id)
        await self.db.commit()
        return added

    async def get_messages(
        self, requester: Principal, conversation_id: str, page: int = 1, limit: int = 50
    ) -> tuple[list[Message], int]:
        """
        Page over non-deleted messages newest first and return the page in
        chronological order. Reading marks everything from others as read.
        """
        await self.get_conversation_for(requester, conversation_id)
        await self._insert_receipts(requester, conversation_id)
        await self.db.commit()

        query = (
            select(Message)
            .where(Message.conversation_id == conversation_id, Message.deleted == False)  # noqa: E712
            .order_by(Message.created_at.desc(), Message.id.desc())
            .execution_options(populate_existing=True)
        )
        items, total = await self.messages.paginate(query, skip=page_offset(page, limit), limit=limit)
        return list(reversed(items)), total

    async def send_message(
        self,
        requester: Principal,
        conversation_id: str,
        content: str,
        type: Any = MessageType.TEXT,
        attachments: Optional[list[dict]] = None,
    ) -> Message:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message content is required")
        conversation = await self.get_conversation_for(requester, conversation_id)

        message = Message(
            conversation_id=conversation.id,
            sender_id=requester.id,
            sender_type=requester.role.value,
            sender_name=requester.name,
            sender_role=requester.role.value,
            content=content,
            message_type=MessageType(type).value,
            attachments=list(attachments or []),
            school_id=conversation.school_id or requester.school_id,
            read_by=[],
        )
        self.db.add(message)
        await self.db.flush()

        conversation.last_message_id = message.id
        conversation.last_message_at = message.created_at
        conversation.is_active = True
        await self.db.commit()

        recipients = [
            {"user_id": p.user_id, "user_type": p.user_type}
            for p in conversation.other_participants(requester.id)
        ]
        payload = {"conversationId": conversation.id, "message": MessageOut.from_model(message)}
        await self._notify_recipients(requester, conversation, message, recipients)

        if self.channel is not None:
            for recipient in recipients:
                self.channel.publish(user_room(recipient["user_id"]), "newMessage", payload)
        return message

    async def _notify_recipients(
        self,
        requester: Principal,
        conversation: Conversation,
        message: Message,
        recipients: list[dict],
    ) -> None:
        """Best effort. The message is already committed."""
        if not recipients:
            return
        message_id = message.id
        try:
            await NotificationService(self.db, self.channel).fan_out(
                recipients,
                title="New Message",
                message=f"{requester.name} sent you a message: {message_preview(message.content)}",
                type=NotificationType.MESSAGE_RECEIVED,
                priority=NotificationPriority.MEDIUM,
                sender_id=requester.id,
                sender_type=requester.role,
                sender_name=requester.name,
                action_url=f"/messages/{conversation.id}",
                action_data={"conversationId": conversation.id, "messageId": message_id},
                school_id=conversation.school_id,
            )
        except Exception:
            logger.exception(f"Failed to create message notifications for {message_id}")
            await self.db.rollback()
            await self.db.refresh(message)

    async def _reload(self, message_id: str) -> Message:
        result = await self.db.execute(
            select(Message).where(Message.id == message_id).execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def edit_message(self, requester: Principal, message_id: str, content: str) -> Message:
        """Only the sender may edit, and never a deleted message."""
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message content is required")
        now = utcnow()
        result = await self.db.execute(
            update(Message)
            .where(
                Message.id == message_id,
                Message.sender_id == requester.id,
                Message.deleted == False,  # noqa: E712
            )
            .values(content=content, edited=True, edited_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundOrForbidden("Message not found")
        message = await self._reload(message_id)
        await self.db.commit()

        if self.channel is not None:
            self.channel.publish(
                conversation_room(message.conversation_id),
                "messageEdited",
                {
                    "messageId": message.id,
                    "conversationId": message.conversation_id,
                    "content": message.content,
                    "editedAt": message.edited_at,
                },
            )
        return message

    async def delete_message(self, requester: Principal, message_id: str) -> Message:
        """Soft delete by the sender. Deleting twice keeps the first timestamp."""
        now = utcnow()
        result = await self.db.execute(
            update(Message)
            .where(Message.id == message_id, Message.sender_id == requester.id)
            .values(
                deleted=True,
                deleted_at=func.coalesce(Message.deleted_at, literal(now, DateTime(timezone=True))),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundOrForbidden("Message not found")
        message = await self._reload(message_id)
        await self.db.commit()

        if self.channel is not None:
            self.channel.publish(
                conversation_room(message.conversation_id),
                "messageDeleted",
                {
                    "messageId": message.id,
                    "conversationId": message.conversation_id,
                    "deletedAt": message.deleted_at,
                },
            )
        return message

    async def search_messages(
        self,
        requester: Principal,
        query: str,
        conversation_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Message], int]:
        term = (query or "").strip()
        if not term:
            raise ValidationError("Search query is required")

        stmt = select(Message).where(
            Message.deleted == False,  # noqa: E712
            Message.content.ilike(f"%{_escape_like(term)}%", escape="\\"),
        )
        if conversation_id:
            await self.get_conversation_for(requester, conversation_id)
            stmt = stmt.where(Message.conversation_id == conversation_id)
        else:
            stmt = stmt.where(Message.conversation_id.in_(self._participating(requester.id)))

        stmt = stmt.order_by(Message.created_at.desc())
        items, total = await self.messages.paginate(stmt, skip=page_offset(page, limit), limit=limit)
        return list(items), total

    async def get_stats(self, requester: Principal) -> MessageStats:
        """Daily message volume for the school plus the requester's unread total."""
        since = utcnow() - timedelta(days=settings.stats_window_days)
        day = func.date(Message.created_at).label("day")
        result = await self.db.execute(
            select(day, func.count(Message.id).label("count"))
            .where(
                Message.school_id == requester.school_id,
                Message.created_at >= since,
                Message.deleted == False,  # noqa: E712
            )
            .group_by(day)
            .order_by(day)
        )
        daily = [DailyCount(date=str(row.day), count=row.count) for row in result.all()]

        unread = await self.db.execute(
            select(func.count(Message.id)).where(
                Message.conversation_id.in_(self._participating(requester.id)),
                *self._unread_clause(requester.id),
            )
        )
        return MessageStats(daily_stats=daily, unread_count=unread.scalar() or 0)

    async def deactivate_conversation(self, requester: Principal, conversation_id: str) -> None:
        """Soft retirement. Messages are kept."""
        result = await self.db.execute(
            update(Conversation)
            .where(
                Conversation.id == conversation_id,
                Conversation.id.in_(self._participating(requester.id)),
            )
            .values(is_active=False, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundOrForbidden("Conversation not found")
        await self.db.commit()
