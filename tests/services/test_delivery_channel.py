import pytest

from edutrack.services.delivery_channel import conversation_room, user_room


@pytest.mark.asyncio
async def test_connect_joins_identity_room(channel, make_ws):
    ws = make_ws()
    await channel.connect(ws, "student-1")

    assert ws.accepted
    assert channel.members(user_room("student-1")) == {ws}


@pytest.mark.asyncio
async def test_emit_reaches_only_room_members(channel, make_ws):
    a, b, c = make_ws("a"), make_ws("b"), make_ws("c")
    for ws, user in ((a, "u1"), (b, "u2"), (c, "u3")):
        await channel.connect(ws, user)
    room = conversation_room("conv-1")
    channel.join(a, room)
    channel.join(b, room)

    sent = await channel.emit(room, "typing", {"conversationId": "conv-1"}, exclude=a)

    assert sent == 1
    assert a.sent == []
    assert b.sent == [{"event": "typing", "data": {"conversationId": "conv-1"}}]
    assert c.sent == []


@pytest.mark.asyncio
async def test_dead_socket_is_pruned(channel, make_ws):
    alive, dead = make_ws("alive"), make_ws("dead", fail=True)
    await channel.connect(alive, "u1")
    await channel.connect(dead, "u1")

    sent = await channel.emit(user_room("u1"), "newNotification", {"id": "n1"})

    assert sent == 1
    assert channel.members(user_room("u1")) == {alive}
    assert dead not in channel.memberships


@pytest.mark.asyncio
async def test_disconnect_leaves_every_room(channel, make_ws):
    ws = make_ws()
    await channel.connect(ws, "u1")
    channel.join(ws, conversation_room("c1"))

    channel.disconnect(ws)

    assert channel.rooms == {}
    assert channel.memberships == {}


@pytest.mark.asyncio
async def test_leave_and_publish_without_subscribers(channel, make_ws):
    ws = make_ws()
    await channel.connect(ws, "u1")
    channel.join(ws, conversation_room("c1"))
    channel.leave(ws, conversation_room("c1"))

    channel.publish(conversation_room("c1"), "messageDeleted", {"messageId": "m1"})
    await channel.flush()

    assert ws.sent == []


def test_publish_without_event_loop_is_dropped(channel):
    channel.publish(user_room("u1"), "newMessage", {})
    assert channel._pending == set()
