"""Notification maintenance tasks."""

import asyncio
from datetime import datetime, timezone

from edutrack.core.logging import get_logger
from edutrack.db.session import async_session_factory
from edutrack.services.notification_service import NotificationService
from edutrack.workers.celery_app import celery_app

logger = get_logger(__name__)


async def _purge_expired_notifications(session_factory=async_session_factory) -> dict:
    async with session_factory() as session:
        removed = await NotificationService(session).purge_expired()

    return {
        "status": "completed",
        "removed": removed,
        "ran_at": datetime.now(timezone.utc).isoformat(),
    }


@celery_app.task(bind=True)
def purge_expired_notifications(self) -> dict:
    """Hard-delete notifications whose expiry has passed."""
    logger.info("Purging expired notifications")
    return asyncio.run(_purge_expired_notifications())
