import pytest
import pytest_asyncio
from httpx import AsyncClient

from edutrack.services.delivery_channel import conversation_room


@pytest_asyncio.fixture
async def conversation_id(client: AsyncClient, teacher, student, headers_for):
    response = await client.post(
        "/api/v1/conversations",
        json={
            "participantId": student.id,
            "participantType": "student",
            "participantName": student.name,
        },
        headers=headers_for(teacher),
    )
    return response.json()["data"]["id"]


async def _send(client, conversation_id, sender, content, headers_for):
    response = await client.post(
        f"/api/v1/conversations/{conversation_id}/messages",
        json={"content": content},
        headers=headers_for(sender),
    )
    return response.json()["data"]


@pytest.mark.asyncio
async def test_edit_by_sender_broadcasts_to_viewers(
    client: AsyncClient, channel, make_ws, conversation_id, teacher, student, headers_for
):
    message = await _send(client, conversation_id, teacher, "Quiz tomorrow", headers_for)
    viewer = make_ws("viewer")
    await channel.connect(viewer, student.id)
    channel.join(viewer, conversation_room(conversation_id))

    denied = await client.put(
        f"/api/v1/messages/{message['id']}", json={"content": "No quiz"}, headers=headers_for(student)
    )
    assert denied.status_code == 404

    edited = await client.put(
        f"/api/v1/messages/{message['id']}", json={"content": "Quiz on Friday"}, headers=headers_for(teacher)
    )
    await channel.flush()

    assert edited.status_code == 200
    assert edited.json()["data"]["edited"] is True
    [event] = viewer.events("messageEdited")
    assert event["content"] == "Quiz on Friday"
    assert event["conversationId"] == conversation_id


@pytest.mark.asyncio
async def test_delete_hides_message(
    client: AsyncClient, channel, conversation_id, teacher, student, headers_for
):
    message = await _send(client, conversation_id, teacher, "typo", headers_for)

    deleted = await client.delete(f"/api/v1/messages/{message['id']}", headers=headers_for(teacher))
    assert deleted.status_code == 200

    listed = await client.get(f"/api/v1/conversations/{conversation_id}/messages", headers=headers_for(student))
    assert listed.json()["data"] == []
    await channel.flush()


@pytest.mark.asyncio
async def test_search_and_stats(client: AsyncClient, channel, conversation_id, teacher, student, headers_for):
    await _send(client, conversation_id, teacher, "Field trip permission slip", headers_for)
    await _send(client, conversation_id, teacher, "Lunch menu", headers_for)

    found = await client.get(
        "/api/v1/messages/search", params={"query": "PERMISSION"}, headers=headers_for(student)
    )
    assert found.status_code == 200
    assert [m["content"] for m in found.json()["data"]] == ["Field trip permission slip"]
    assert found.json()["pagination"]["total"] == 1

    missing_query = await client.get("/api/v1/messages/search", headers=headers_for(student))
    assert missing_query.status_code == 400

    stats = await client.get("/api/v1/messages/stats", headers=headers_for(student))
    data = stats.json()["data"]
    assert data["unreadCount"] == 2
    assert sum(day["count"] for day in data["dailyStats"]) == 2
    await channel.flush()
