"""Notification creation, fan-out, read state and expiry."""

from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from edutrack.core.config import settings
from edutrack.core.exceptions import AuthorizationError, NotFoundOrForbidden, ValidationError
from edutrack.core.logging import get_logger
from edutrack.db.base import utcnow
from edutrack.db.repositories.notification_repo import NotificationRepository
from edutrack.models.identity import USER_TYPES, SenderType
from edutrack.models.notification import Notification, NotificationPriority, NotificationType
from edutrack.schemas.common import Principal, page_offset
from edutrack.schemas.notification import (
    BroadcastFailure,
    BroadcastResult,
    NotificationResponse,
    NotificationStats,
    PriorityStat,
    TypeStat,
)
from edutrack.services.delivery_channel import DeliveryChannel, user_room

logger = get_logger(__name__)


def _coerce(enum_cls, value: Any, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'", errors=[f"{field} must be one of: {allowed}"])


class NotificationService:
    def __init__(self, db: AsyncSession, channel: Optional[DeliveryChannel] = None):
        self.db = db
        self.repo = NotificationRepository(db)
        self.channel = channel

    async def _add(
        self,
        recipient_id: str,
        recipient_type: str,
        title: str,
        message: str,
        type: Any = NotificationType.GENERAL,
        priority: Any = NotificationPriority.MEDIUM,
        sender_id: Optional[str] = None,
        sender_type: Any = SenderType.SYSTEM,
        sender_name: Optional[str] = None,
        action_url: Optional[str] = None,
        action_data: Optional[dict] = None,
        school_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Notification:
        """Validate and flush one notification without committing."""
        if not recipient_id or not str(recipient_id).strip():
            raise ValidationError("Recipient id is required")
        recipient_type = getattr(recipient_type, "value", recipient_type)
        if recipient_type not in USER_TYPES:
            raise ValidationError(
                f"Invalid recipient type '{recipient_type}'",
                errors=[f"recipientType must be one of: {', '.join(sorted(USER_TYPES))}"],
            )
        if not title or not message:
            raise ValidationError("Title and message are required")

        data = {
            "recipient_id": str(recipient_id),
            "recipient_type": recipient_type,
            "sender_id": sender_id,
            "sender_type": _coerce(SenderType, sender_type, "senderType"),
            "sender_name": sender_name,
            "title": title.strip(),
            "message": message.strip(),
            "type": _coerce(NotificationType, type, "type"),
            "priority": _coerce(NotificationPriority, priority, "priority"),
            "action_url": action_url,
            "action_data": action_data,
            "school_id": school_id,
            "expires_at": expires_at or utcnow() + timedelta(days=settings.notification_ttl_days),
        }
        return await self.repo.create(data)

    def _publish(self, notifications: Iterable[Notification]) -> None:
        if self.channel is None:
            return
        for notification in notifications:
            self.channel.publish(
                user_room(notification.recipient_id),
                "newNotification",
                NotificationResponse.from_model(notification),
            )

    async def create_notification(self, **fields: Any) -> Notification:
        """Persist one notification and push it to the recipient's room."""
        notification = await self._add(**fields)
        await self.db.commit()
        self._publish([notification])
        return notification

    async def fan_out(self, recipients: Iterable[dict], **fields: Any) -> tuple[list[Notification], list[dict]]:
        """Create one notification per recipient, each in its own savepoint.

        A failing recipient is reported back and does not affect the others.
        """
        created: list[Notification] = []
        failed: list[dict] = []
        for recipient in recipients:
            user_id = recipient.get("user_id")
            user_type = recipient.get("user_type")
            try:
                async with self.db.begin_nested():
                    notification = await self._add(
                        recipient_id=user_id, recipient_type=user_type, **fields
                    )
                created.append(notification)
            except (ValidationError, SQLAlchemyError) as e:
                reason = e.message if isinstance(e, ValidationError) else "Failed to store notification"
                logger.warning(f"Notification for {user_type} {user_id} not created: {e}")
                failed.append({"user_id": str(user_id or ""), "user_type": str(user_type or ""), "reason": reason})
        await self.db.commit()
        self._publish(created)
        return created, failed

    async def broadcast_notification(
        self,
        sender: Principal,
        recipients: Iterable[dict],
        title: str,
        message: str,
        type: Any = NotificationType.GENERAL,
        priority: Any = NotificationPriority.MEDIUM,
        action_url: Optional[str] = None,
        action_data: Optional[dict] = None,
    ) -> BroadcastResult:
        """Admin-only fan-out to an explicit recipient list."""
        if not sender.is_admin:
            raise AuthorizationError("Only administrators can broadcast notifications")
        recipients = list(recipients)
        if not recipients:
            raise ValidationError("Recipients list is required")

        created, failed = await self.fan_out(
            recipients,
            title=title,
            message=message,
            type=type,
            priority=priority,
            sender_id=sender.id,
            sender_type=sender.role,
            sender_name=sender.name,
            action_url=action_url,
            action_data=action_data,
            school_id=sender.school_id,
        )
        logger.info(
            "Broadcast notification",
            extra={"sender_id": sender.id, "created_count": len(created), "failed_count": len(failed)},
        )
        return BroadcastResult(
            count=len(created),
            notifications=[NotificationResponse.from_model(n) for n in created],
            failed=[BroadcastFailure(**f) for f in failed],
        )

    async def list_notifications(
        self,
        requester: Principal,
        type: Optional[str] = None,
        priority: Optional[str] = None,
        read: Optional[bool] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Notification], int]:
        items, total = await self.repo.get_by_recipient(
            requester.id,
            requester.role.value,
            type=type,
            priority=priority,
            read=read,
            skip=page_offset(page, limit),
            limit=limit,
        )
        return list(items), total

    async def mark_as_read(self, requester: Principal, notification_id: str) -> Notification:
        notification = await self.repo.mark_read(notification_id, requester.id, requester.role.value)
        if notification is None:
            raise NotFoundOrForbidden("Notification not found")
        await self.db.commit()
        return notification

    async def mark_all_as_read(self, requester: Principal) -> int:
        count = await self.repo.mark_all_read(requester.id, requester.role.value)
        await self.db.commit()
        return count

    async def get_unread_count(self, requester: Principal) -> int:
        return await self.repo.get_unread_count(requester.id, requester.role.value)

    async def delete_notification(self, requester: Principal, notification_id: str) -> None:
        deleted = await self.repo.delete_for_recipient(notification_id, requester.id, requester.role.value)
        if not deleted:
            raise NotFoundOrForbidden("Notification not found")
        await self.db.commit()

    async def get_stats(self, requester: Principal) -> NotificationStats:
        if not requester.is_admin:
            raise AuthorizationError("Only administrators can view notification statistics")
        since = utcnow() - timedelta(days=settings.stats_window_days)
        type_stats = await self.repo.type_stats(requester.school_id, since)
        priority_stats = await self.repo.priority_stats(requester.school_id)
        return NotificationStats(
            type_stats=[TypeStat(**s) for s in type_stats],
            priority_stats=[PriorityStat(**s) for s in priority_stats],
        )

    async def purge_expired(self) -> int:
        """Hard-delete expired notifications. Run periodically by the worker."""
        removed = await self.repo.purge_expired()
        await self.db.commit()
        logger.info(f"Purged {removed} expired notification(s)")
        return removed
