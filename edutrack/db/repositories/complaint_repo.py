"""Complaint repository."""

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edutrack.db.repositories.base import BaseRepository
from edutrack.models.complaint import Complaint


class ComplaintRepository(BaseRepository[Complaint]):
    """Complaint repository."""

    def __init__(self, session: AsyncSession):
        super().__init__(Complaint, session)

    async def get_filtered(
        self,
        school_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        complainant_id: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[Sequence[Complaint], int]:
        """Get complaints matching the filters, most recent activity first."""
        query = select(Complaint).where(Complaint.school_id == school_id)

        if teacher_id:
            query = query.where(Complaint.teacher_id == teacher_id)
        if complainant_id:
            query = query.where(Complaint.complainant_id == complainant_id)
        if status:
            query = query.where(Complaint.status == status)
        if category:
            query = query.where(Complaint.category == category)
        if priority:
            query = query.where(Complaint.priority == priority)

        query = query.order_by(Complaint.last_activity_at.desc())
        return await self.paginate(query, skip=skip, limit=limit)
