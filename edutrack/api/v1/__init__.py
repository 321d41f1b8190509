"""API v1 router."""

from fastapi import APIRouter

from edutrack.api.v1 import complaints, conversations, delivery_ws, messages, notifications

router = APIRouter()

router.include_router(conversations.router, prefix="/conversations", tags=["Conversations"])
router.include_router(messages.router, prefix="/messages", tags=["Messages"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(complaints.router, prefix="/complaints", tags=["Complaints"])
router.include_router(delivery_ws.router, tags=["Delivery Channel (WebSocket)"])
