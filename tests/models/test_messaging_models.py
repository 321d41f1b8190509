import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from edutrack.models.conversation import Conversation, ConversationParticipant, make_participant_key
from edutrack.models.message import Message, MessageRead


def test_participant_key_ignores_order_and_duplicates():
    assert make_participant_key(["b", "a", "b"]) == "a,b"
    assert make_participant_key(["a", "b"]) == make_participant_key(["b", "a"])


def _conversation() -> Conversation:
    return Conversation(
        participant_key="student-1,teacher-1",
        participants=[
            ConversationParticipant(user_id="teacher-1", user_type="teacher", name="Tom", role="teacher"),
            ConversationParticipant(user_id="student-1", user_type="student", name="Sam", role="student"),
        ],
    )


@pytest.mark.asyncio
async def test_conversation_defaults_and_helpers(db_session):
    conversation = _conversation()
    db_session.add(conversation)
    await db_session.commit()

    assert conversation.type == "direct"
    assert conversation.is_active is True
    assert conversation.has_participant("student-1")
    assert not conversation.has_participant("parent-1")
    assert [p.user_id for p in conversation.other_participants("teacher-1")] == ["student-1"]


@pytest.mark.asyncio
async def test_participant_is_unique_per_conversation(db_session):
    conversation = _conversation()
    db_session.add(conversation)
    await db_session.commit()

    db_session.add(
        ConversationParticipant(
            conversation_id=conversation.id, user_id="teacher-1", user_type="teacher", name="Tom", role="teacher"
        )
    )
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


@pytest.mark.asyncio
async def test_read_receipt_is_unique_per_user(db_session):
    conversation = _conversation()
    db_session.add(conversation)
    await db_session.flush()
    message = Message(
        conversation_id=conversation.id,
        sender_id="teacher-1",
        sender_type="teacher",
        sender_name="Tom",
        sender_role="teacher",
        content="Hi",
        read_by=[],
    )
    db_session.add(message)
    await db_session.commit()

    assert message.message_type == "text"
    assert message.deleted is False
    assert message.attachments == []

    receipt = MessageRead(message_id=message.id, user_id="student-1", user_type="student")
    db_session.add(receipt)
    await db_session.commit()
    db_session.expunge(receipt)

    db_session.add(MessageRead(message_id=message.id, user_id="student-1", user_type="student"))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


def test_messages_are_not_owned_by_the_conversation_mapping():
    # Deleting a conversation object must never cascade into message rows
    assert "messages" not in inspect(Conversation).relationships
    assert "conversation" not in inspect(Message).relationships
    assert inspect(Message).relationships["read_by"].lazy == "selectin"


def test_direct_conversation_index_is_partial_and_unique():
    [index] = [i for i in Conversation.__table__.indexes if i.name == "uq_conversations_direct_participants"]
    assert index.unique
    assert [c.name for c in index.columns] == ["type", "participant_key"]
    assert str(index.dialect_options["postgresql"]["where"]) == "type = 'direct'"
