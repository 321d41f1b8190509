import pytest
from httpx import AsyncClient


def _complaint_body(teacher, **overrides):
    body = {
        "studentId": "student-1",
        "teacherId": teacher.id,
        "teacherName": teacher.name,
        "title": "Bullying in class",
        "description": "Happened twice this week",
        "category": "behavioral",
        "priority": "urgent",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_complaint_lifecycle(client: AsyncClient, channel, parent, teacher, headers_for):
    created = await client.post("/api/v1/complaints", json=_complaint_body(teacher), headers=headers_for(parent))
    assert created.status_code == 201
    complaint = created.json()["data"]
    assert complaint["status"] == "open"
    assert complaint["complainant"] == {"userId": parent.id, "userType": "parent", "name": parent.name}
    assert complaint["conversationId"]

    inbox = await client.get("/api/v1/notifications", headers=headers_for(teacher))
    [notification] = inbox.json()["data"]
    assert notification["type"] == "complaint_update"
    assert notification["priority"] == "urgent"

    conversations = await client.get("/api/v1/conversations", headers=headers_for(teacher))
    assert conversations.json()["data"][0]["id"] == complaint["conversationId"]
    assert conversations.json()["data"][0]["type"] == "complaint"

    listed = await client.get("/api/v1/complaints", headers=headers_for(teacher))
    assert [c["id"] for c in listed.json()["data"]] == [complaint["id"]]

    updated = await client.put(
        f"/api/v1/complaints/{complaint['id']}/status",
        json={"status": "closed", "resolutionNote": "Spoke with both students"},
        headers=headers_for(teacher),
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["status"] == "closed"
    assert updated.json()["data"]["resolvedById"] == teacher.id
    await channel.flush()


@pytest.mark.asyncio
async def test_teacher_cannot_file_complaint(client: AsyncClient, teacher, headers_for):
    response = await client.post("/api/v1/complaints", json=_complaint_body(teacher), headers=headers_for(teacher))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_status_is_rejected(client: AsyncClient, channel, student, teacher, headers_for):
    created = await client.post("/api/v1/complaints", json=_complaint_body(teacher), headers=headers_for(student))
    complaint_id = created.json()["data"]["id"]

    response = await client.put(
        f"/api/v1/complaints/{complaint_id}/status", json={"status": "ignored"}, headers=headers_for(teacher)
    )
    assert response.status_code == 400
    await channel.flush()
