from datetime import timedelta

import pytest
from httpx import AsyncClient

from edutrack.db.base import utcnow
from edutrack.services.notification_service import NotificationService


@pytest.mark.asyncio
async def test_admin_creates_notification(client: AsyncClient, channel, admin, student, headers_for):
    response = await client.post(
        "/api/v1/notifications",
        json={
            "recipientId": student.id,
            "recipientType": "student",
            "title": "Grades posted",
            "message": "Term 1 grades are available",
            "type": "grade_update",
        },
        headers=headers_for(admin),
    )
    await channel.flush()

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["sender"] == {"userId": admin.id, "userType": "admin", "name": admin.name}
    assert data["priority"] == "medium"
    assert data["read"] is False


@pytest.mark.asyncio
async def test_create_with_bad_recipient_type_is_400(client: AsyncClient, admin, headers_for):
    response = await client.post(
        "/api/v1/notifications",
        json={"recipientId": "x", "recipientType": "robot", "title": "t", "message": "m"},
        headers=headers_for(admin),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid recipient type 'robot'"


@pytest.mark.asyncio
async def test_admin_only_endpoints_reject_other_roles(client: AsyncClient, teacher, headers_for):
    headers = headers_for(teacher)
    body = {"recipients": [{"userId": "s", "userType": "student"}], "title": "t", "message": "m"}

    assert (await client.post("/api/v1/notifications/broadcast", json=body, headers=headers)).status_code == 403
    assert (await client.get("/api/v1/notifications/stats", headers=headers)).status_code == 403


@pytest.mark.asyncio
async def test_broadcast_partial_failure(client: AsyncClient, channel, admin, student, parent, headers_for):
    response = await client.post(
        "/api/v1/notifications/broadcast",
        json={
            "recipients": [
                {"userId": student.id, "userType": "student"},
                {"userId": "nobody", "userType": "martian"},
                {"userId": parent.id, "userType": "parent"},
            ],
            "title": "Parent meeting",
            "message": "Thursday 6pm",
            "type": "parent_meeting",
            "priority": "high",
        },
        headers=headers_for(admin),
    )
    await channel.flush()

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["count"] == 2
    assert len(data["notifications"]) == 2
    assert data["failed"][0]["userId"] == "nobody"
    assert data["failed"][0]["reason"] == "Invalid recipient type 'martian'"


@pytest.mark.asyncio
async def test_recipient_inbox_flow(client: AsyncClient, db_session, student, parent, headers_for):
    service = NotificationService(db_session)
    first = await service.create_notification(
        recipient_id=student.id, recipient_type="student", title="One", message="first"
    )
    await service.create_notification(
        recipient_id=student.id, recipient_type="student", title="Two", message="second", type="fee_reminder"
    )
    await service.create_notification(
        recipient_id=student.id,
        recipient_type="student",
        title="Old",
        message="expired",
        expires_at=utcnow() - timedelta(hours=1),
    )
    headers = headers_for(student)

    listed = await client.get("/api/v1/notifications", headers=headers)
    assert [n["title"] for n in listed.json()["data"]] == ["Two", "One"]
    assert listed.json()["pagination"]["total"] == 2

    filtered = await client.get("/api/v1/notifications", params={"type": "fee_reminder"}, headers=headers)
    assert [n["title"] for n in filtered.json()["data"]] == ["Two"]

    count = await client.get("/api/v1/notifications/unread-count", headers=headers)
    assert count.json()["data"] == {"unreadCount": 2}

    other = await client.put(f"/api/v1/notifications/{first.id}/read", headers=headers_for(parent))
    assert other.status_code == 404

    read = await client.put(f"/api/v1/notifications/{first.id}/read", headers=headers)
    assert read.json()["data"]["read"] is True

    all_read = await client.put("/api/v1/notifications/read-all", headers=headers)
    assert all_read.json()["data"] == {"modifiedCount": 1}

    deleted = await client.delete(f"/api/v1/notifications/{first.id}", headers=headers)
    assert deleted.status_code == 200
    count = await client.get("/api/v1/notifications/unread-count", headers=headers)
    assert count.json()["data"] == {"unreadCount": 0}


@pytest.mark.asyncio
async def test_stats_for_admin(client: AsyncClient, db_session, admin, student, headers_for):
    service = NotificationService(db_session)
    await service.create_notification(
        recipient_id=student.id,
        recipient_type="student",
        title="Attendance",
        message="Absent today",
        type="attendance_alert",
        school_id=admin.school_id,
    )

    response = await client.get("/api/v1/notifications/stats", headers=headers_for(admin))

    data = response.json()["data"]
    assert data["typeStats"] == [{"type": "attendance_alert", "count": 1, "readCount": 0, "unreadCount": 1}]
    assert data["priorityStats"] == [{"priority": "medium", "count": 1}]
