"""Complaints filed by students and parents against teachers."""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from edutrack.core.exceptions import AuthorizationError, NotFoundOrForbidden, ValidationError
from edutrack.core.logging import get_logger
from edutrack.db.base import utcnow
from edutrack.db.repositories.complaint_repo import ComplaintRepository
from edutrack.models.complaint import RESOLVING_STATUSES, Complaint, ComplaintCategory, ComplaintStatus
from edutrack.models.conversation import ConversationType
from edutrack.models.identity import UserType
from edutrack.models.notification import NotificationPriority, NotificationType
from edutrack.schemas.common import Principal, page_offset
from edutrack.schemas.complaint import ComplaintResponse
from edutrack.services.delivery_channel import DeliveryChannel, user_room
from edutrack.services.messaging_service import MessagingService
from edutrack.services.notification_service import NotificationService

logger = get_logger(__name__)

COMPLAINANT_ROLES = (UserType.STUDENT, UserType.PARENT)


class ComplaintService:
    def __init__(self, db: AsyncSession, channel: Optional[DeliveryChannel] = None):
        self.db = db
        self.channel = channel
        self.repo = ComplaintRepository(db)
        self.messaging = MessagingService(db, channel)
        self.notifications = NotificationService(db, channel)

    async def create_complaint(
        self,
        requester: Principal,
        student_id: str,
        teacher_id: str,
        teacher_name: str,
        title: str,
        description: str,
        category: Any = ComplaintCategory.OTHER,
        priority: Any = NotificationPriority.MEDIUM,
        attachments: Optional[list[dict]] = None,
    ) -> Complaint:
        """
        File a complaint. Opens a complaint conversation with the teacher and
        notifies them. The notification is best effort.
        """
        if requester.role not in COMPLAINANT_ROLES:
            raise AuthorizationError("Only students and parents can file complaints")
        if teacher_id == requester.id:
            raise ValidationError("Cannot file a complaint against yourself")

        conversation = await self.messaging.create_conversation(
            requester,
            [{"user_id": teacher_id, "user_type": UserType.TEACHER, "name": teacher_name}],
            type=ConversationType.COMPLAINT,
            subject=title,
            commit=False,
        )
        complaint = Complaint(
            complainant_id=requester.id,
            complainant_type=requester.role.value,
            complainant_name=requester.name,
            student_id=student_id,
            teacher_id=teacher_id,
            teacher_name=teacher_name,
            title=title,
            description=description,
            category=ComplaintCategory(category).value,
            priority=NotificationPriority(priority).value,
            status=ComplaintStatus.OPEN.value,
            conversation_id=conversation.id,
            attachments=list(attachments or []),
            last_activity_at=utcnow(),
            school_id=requester.school_id,
        )
        self.db.add(complaint)
        await self.db.commit()
        logger.info(f"Complaint {complaint.id} filed by {requester.role.value} {requester.id}")

        urgent = complaint.priority == NotificationPriority.URGENT.value
        await self._notify(
            complaint,
            recipient_id=teacher_id,
            recipient_type=UserType.TEACHER,
            sender=requester,
            title="New Complaint Filed",
            message=f"{requester.name} has filed a complaint: {title}",
            priority=NotificationPriority.URGENT if urgent else NotificationPriority.MEDIUM,
        )
        return complaint

    async def _notify(self, complaint: Complaint, recipient_id: str, recipient_type: Any,
                      sender: Principal, title: str, message: str, priority: Any) -> None:
        try:
            await self.notifications.create_notification(
                recipient_id=recipient_id,
                recipient_type=recipient_type,
                sender_id=sender.id,
                sender_type=sender.role,
                sender_name=sender.name,
                title=title,
                message=message,
                type=NotificationType.COMPLAINT_UPDATE,
                priority=priority,
                action_url=f"/complaints/{complaint.id}",
                action_data={"complaintId": complaint.id, "conversationId": complaint.conversation_id},
                school_id=complaint.school_id,
            )
        except Exception:
            logger.exception(f"Failed to notify {recipient_id} about complaint {complaint.id}")
            await self.db.rollback()
            await self.db.refresh(complaint)

    async def list_complaints(
        self,
        requester: Principal,
        status: Optional[str] = None,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Complaint], int]:
        """Teachers see complaints addressed to them, complainants their own, admins the school."""
        scope: dict[str, str] = {}
        if requester.role == UserType.TEACHER:
            scope["teacher_id"] = requester.id
        elif requester.role in COMPLAINANT_ROLES:
            scope["complainant_id"] = requester.id

        items, total = await self.repo.get_filtered(
            school_id=requester.school_id,
            status=status,
            category=category,
            priority=priority,
            skip=page_offset(page, limit),
            limit=limit,
            **scope,
        )
        return list(items), total

    async def update_status(
        self,
        requester: Principal,
        complaint_id: str,
        status: Any,
        resolution_note: Optional[str] = None,
    ) -> Complaint:
        """The addressed teacher or a school admin moves a complaint along."""
        if requester.role not in (UserType.TEACHER, UserType.ADMIN):
            raise AuthorizationError("Only teachers and administrators can update complaints")

        complaint = await self.repo.get(complaint_id)
        if complaint is None or complaint.school_id != requester.school_id:
            raise NotFoundOrForbidden("Complaint not found")
        if requester.role == UserType.TEACHER and complaint.teacher_id != requester.id:
            raise NotFoundOrForbidden("Complaint not found")

        now = utcnow()
        values: dict[str, Any] = {"status": ComplaintStatus(status).value, "last_activity_at": now}
        if values["status"] in RESOLVING_STATUSES:
            values.update(resolution_note=resolution_note, resolved_by_id=requester.id, resolved_at=now)
        complaint = await self.repo.update(complaint, values)
        await self.db.commit()

        await self._notify(
            complaint,
            recipient_id=complaint.complainant_id,
            recipient_type=complaint.complainant_type,
            sender=requester,
            title="Complaint Updated",
            message=f"Your complaint \"{complaint.title}\" is now {complaint.status.replace('_', ' ')}",
            priority=NotificationPriority.MEDIUM,
        )
        if self.channel is not None:
            self.channel.publish(
                user_room(complaint.complainant_id),
                "complaintUpdate",
                ComplaintResponse.from_model(complaint),
            )
        return complaint
