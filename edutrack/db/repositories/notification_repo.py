"""Notification repository."""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import DateTime, case, delete, func, literal, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from edutrack.db.base import utcnow
from edutrack.db.repositories.base import BaseRepository
from edutrack.models.notification import Notification


class NotificationRepository(BaseRepository[Notification]):
    """Notification repository."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    def _own_unexpired(self, recipient_id: str, recipient_type: str, now: datetime):
        return (
            Notification.recipient_id == recipient_id,
            Notification.recipient_type == recipient_type,
            Notification.expires_at > now,
        )

    async def get_by_recipient(
        self,
        recipient_id: str,
        recipient_type: str,
        type: Optional[str] = None,
        priority: Optional[str] = None,
        read: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[Notification], int]:
        """Get unexpired notifications for a recipient, newest first."""
        query = select(Notification).where(*self._own_unexpired(recipient_id, recipient_type, utcnow()))

        if type:
            query = query.where(Notification.type == type)
        if priority:
            query = query.where(Notification.priority == priority)
        if read is not None:
            query = query.where(Notification.read == read)

        query = query.order_by(Notification.created_at.desc())
        return await self.paginate(query, skip=skip, limit=limit)

    async def get_unread_count(self, recipient_id: str, recipient_type: str) -> int:
        """Get unread, unexpired notification count for a recipient."""
        query = (
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.read == False,  # noqa: E712
                *self._own_unexpired(recipient_id, recipient_type, utcnow()),
            )
        )
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def mark_read(self, id: str, recipient_id: str, recipient_type: str) -> Optional[Notification]:
        """Flag one notification as read if it belongs to the recipient."""
        now = utcnow()
        stmt = (
            update(Notification)
            .where(Notification.id == id, *self._own_unexpired(recipient_id, recipient_type, now))
            .values(
                read=True,
                read_at=func.coalesce(Notification.read_at, literal(now, DateTime(timezone=True))),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        query = (
            select(Notification)
            .where(Notification.id == id)
            .execution_options(populate_existing=True)
        )
        found = await self.session.execute(query)
        return found.scalar_one()

    async def mark_all_read(self, recipient_id: str, recipient_type: str) -> int:
        """Mark all unread notifications as read for a recipient."""
        now = utcnow()
        stmt = (
            update(Notification)
            .where(
                Notification.read == False,  # noqa: E712
                *self._own_unexpired(recipient_id, recipient_type, now),
            )
            .values(read=True, read_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_for_recipient(self, id: str, recipient_id: str, recipient_type: str) -> bool:
        stmt = delete(Notification).where(
            Notification.id == id,
            Notification.recipient_id == recipient_id,
            Notification.recipient_type == recipient_type,
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Hard-delete every notification whose expiry has passed."""
        stmt = (
            delete(Notification)
            .where(Notification.expires_at <= (now or utcnow()))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def type_stats(self, school_id: Optional[str], since: datetime) -> list[dict]:
        read_count = func.sum(case((Notification.read == True, 1), else_=0))  # noqa: E712
        unread_count = func.sum(case((Notification.read == False, 1), else_=0))  # noqa: E712
        query = (
            select(
                Notification.type,
                func.count(Notification.id).label("count"),
                read_count.label("read_count"),
                unread_count.label("unread_count"),
            )
            .where(Notification.school_id == school_id, Notification.created_at >= since)
            .group_by(Notification.type)
            .order_by(func.count(Notification.id).desc())
        )
        result = await self.session.execute(query)
        return [
            {
                "type": row.type,
                "count": row.count,
                "read_count": int(row.read_count or 0),
                "unread_count": int(row.unread_count or 0),
            }
            for row in result.all()
        ]

    async def priority_stats(self, school_id: Optional[str]) -> list[dict]:
        query = (
            select(Notification.priority, func.count(Notification.id).label("count"))
            .where(Notification.school_id == school_id)
            .group_by(Notification.priority)
            .order_by(func.count(Notification.id).desc())
        )
        result = await self.session.execute(query)
        return [{"priority": row.priority, "count": row.count} for row in result.all()]
