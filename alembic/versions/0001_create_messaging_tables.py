"""Create conversation, message, notification and complaint tables

Revision ID: 0001_messaging
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_messaging'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'conversations',
        sa.Column('id', sa.UUID(as_uuid=False), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('participant_key', sa.String(length=1024), nullable=False),
        sa.Column('last_message_id', sa.String(length=36), nullable=True),
        sa.Column('last_message_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('school_id', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_conversations_type', 'conversations', ['type'])
    op.create_index('ix_conversations_participant_key', 'conversations', ['participant_key'])
    op.create_index('ix_conversations_last_message_at', 'conversations', ['last_message_at'])
    op.create_index('ix_conversations_is_active', 'conversations', ['is_active'])
    op.create_index('ix_conversations_school_id', 'conversations', ['school_id'])
    op.create_index('ix_conversations_created_at', 'conversations', ['created_at'])
    op.create_index(
        'uq_conversations_direct_participants',
        'conversations',
        ['type', 'participant_key'],
        unique=True,
        postgresql_where=sa.text("type = 'direct'"),
        sqlite_where=sa.text("type = 'direct'"),
    )

    op.create_table(
        'conversation_participants',
        sa.Column('id', sa.UUID(as_uuid=False), nullable=False),
        sa.Column('conversation_id', sa.UUID(as_uuid=False), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('user_type', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('conversation_id', 'user_id', name='uq_conversation_participant'),
    )
    op.create_index('ix_conversation_participants_conversation_id', 'conversation_participants', ['conversation_id'])
    op.create_index('ix_conversation_participants_user_id', 'conversation_participants', ['user_id'])
    op.create_index('ix_conversation_participants_created_at', 'conversation_participants', ['created_at'])

    op.create_table(
        'messages',
        sa.Column('id', sa.UUID(as_uuid=False), nullable=False),
        sa.Column('conversation_id', sa.UUID(as_uuid=False), nullable=False),
        sa.Column('sender_id', sa.String(length=64), nullable=False),
        sa.Column('sender_type', sa.String(length=20), nullable=False),
        sa.Column('sender_name', sa.String(length=255), nullable=False),
        sa.Column('sender_role', sa.String(length=50), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('message_type', sa.String(length=20), nullable=False),
        sa.Column('attachments', sa.JSON(), nullable=False),
        sa.Column('edited', sa.Boolean(), nullable=False),
        sa.Column('edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('school_id', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'])
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'])
    op.create_index('ix_messages_deleted', 'messages', ['deleted'])
    op.create_index('ix_messages_school_id', 'messages', ['school_id'])
    op.create_index('ix_messages_created_at', 'messages', ['created_at'])
    op.create_index('ix_messages_conversation_created', 'messages', ['conversation_id', 'created_at'])

    op.create_table(
        'message_reads',
        sa.Column('message_id', sa.UUID(as_uuid=False), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('user_type', sa.String(length=20), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['message_id'], ['messages.id']),
        sa.PrimaryKeyConstraint('message_id', 'user_id'),
    )
    op.create_index('ix_message_reads_user_id', 'message_reads', ['user_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.UUID(as_uuid=False), nullable=False),
        sa.Column('recipient_id', sa.String(length=64), nullable=False),
        sa.Column('recipient_type', sa.String(length=20), nullable=False),
        sa.Column('sender_id', sa.String(length=64), nullable=True),
        sa.Column('sender_type', sa.String(length=20), nullable=True),
        sa.Column('sender_name', sa.String(length=255), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('action_url', sa.String(length=500), nullable=True),
        sa.Column('action_data', sa.JSON(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('school_id', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_recipient_created', 'notifications', ['recipient_id', 'created_at'])
    op.create_index('ix_notifications_read_expires', 'notifications', ['read', 'expires_at'])
    op.create_index('ix_notifications_type_priority', 'notifications', ['type', 'priority'])
    op.create_index('ix_notifications_expires_at', 'notifications', ['expires_at'])
    op.create_index('ix_notifications_school_id', 'notifications', ['school_id'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'complaints',
        sa.Column('id', sa.UUID(as_uuid=False), nullable=False),
        sa.Column('complainant_id', sa.String(length=64), nullable=False),
        sa.Column('complainant_type', sa.String(length=20), nullable=False),
        sa.Column('complainant_name', sa.String(length=255), nullable=False),
        sa.Column('student_id', sa.String(length=64), nullable=False),
        sa.Column('teacher_id', sa.String(length=64), nullable=False),
        sa.Column('teacher_name', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('conversation_id', sa.UUID(as_uuid=False), nullable=True),
        sa.Column('attachments', sa.JSON(), nullable=False),
        sa.Column('resolution_note', sa.Text(), nullable=True),
        sa.Column('resolved_by_id', sa.String(length=64), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('school_id', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_complaints_complainant_id', 'complaints', ['complainant_id'])
    op.create_index('ix_complaints_student_id', 'complaints', ['student_id'])
    op.create_index('ix_complaints_teacher_status', 'complaints', ['teacher_id', 'status'])
    op.create_index('ix_complaints_status_priority', 'complaints', ['status', 'priority'])
    op.create_index('ix_complaints_last_activity_at', 'complaints', ['last_activity_at'])
    op.create_index('ix_complaints_school_id', 'complaints', ['school_id'])
    op.create_index('ix_complaints_created_at', 'complaints', ['created_at'])


def downgrade() -> None:
    op.drop_table('complaints')
    op.drop_table('notifications')
    op.drop_table('message_reads')
    op.drop_table('messages')
    op.drop_table('conversation_participants')
    op.drop_table('conversations')
