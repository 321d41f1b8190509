"""Schemas for complaints."""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from edutrack.models.complaint import Complaint, ComplaintCategory, ComplaintStatus
from edutrack.models.notification import NotificationPriority
from edutrack.schemas.common import CamelModel
from edutrack.schemas.message import Attachment


class ComplaintCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    student_id: str = Field(..., min_length=1, max_length=64)
    teacher_id: str = Field(..., min_length=1, max_length=64)
    teacher_name: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: ComplaintCategory = ComplaintCategory.OTHER
    priority: NotificationPriority = NotificationPriority.MEDIUM
    attachments: List[Attachment] = Field(default_factory=list)


class ComplaintStatusUpdate(CamelModel):
    status: ComplaintStatus
    resolution_note: Optional[str] = None


class ComplainantOut(CamelModel):
    user_id: str
    user_type: str
    name: str


class ComplaintResponse(CamelModel):
    id: str
    complainant: ComplainantOut
    student_id: str
    teacher_id: str
    teacher_name: str
    title: str
    description: str
    category: str
    priority: str
    status: str
    conversation_id: Optional[str] = None
    attachments: List[Attachment]
    resolution_note: Optional[str] = None
    resolved_by_id: Optional[str] = None
    resolved_at: Optional[datetime] = None
    last_activity_at: datetime
    created_at: datetime

    @classmethod
    def from_model(cls, complaint: Complaint) -> "ComplaintResponse":
        return cls(
            id=complaint.id,
            complainant=ComplainantOut(
                user_id=complaint.complainant_id,
                user_type=complaint.complainant_type,
                name=complaint.complainant_name,
            ),
            student_id=complaint.student_id,
            teacher_id=complaint.teacher_id,
            teacher_name=complaint.teacher_name,
            title=complaint.title,
            description=complaint.description,
            category=complaint.category,
            priority=complaint.priority,
            status=complaint.status,
            conversation_id=complaint.conversation_id,
            attachments=complaint.attachments or [],
            resolution_note=complaint.resolution_note,
            resolved_by_id=complaint.resolved_by_id,
            resolved_at=complaint.resolved_at,
            last_activity_at=complaint.last_activity_at,
            created_at=complaint.created_at,
        )
