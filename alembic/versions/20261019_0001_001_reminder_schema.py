"""Reminder schema - users, reminders, notification deliveries and audit logs.

Revision ID: 001
Revises: None
Create Date: 2026-10-19

This migration creates:
- users table with contact data and stored reminder preferences
- reminders table with the partial unique index that keys the linked-entity
  upsert (one system-generated reminder per owner, target and type)
- notification_deliveries table with one row per channel attempt
- audit_logs table for reminder lifecycle records
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Enum labels are the Python member names, which is what SQLAlchemy stores
    op.execute("""
        CREATE TYPE remindertype AS ENUM (
            'TASK_DUE', 'MEETING', 'GOAL_DEADLINE', 'APPRAISAL_SUBMISSION', 'MANAGER_FEEDBACK', 'CUSTOM'
        )
    """)
    op.execute("CREATE TYPE reminderstatus AS ENUM ('PENDING', 'SNOOZED', 'DISMISSED', 'SENT')")
    op.execute("CREATE TYPE targetkind AS ENUM ('TASK', 'MEETING', 'GOAL', 'APPRAISAL', 'FEEDBACK')")
    op.execute("CREATE TYPE notificationchannel AS ENUM ('IN_APP', 'EMAIL', 'PUSH')")
    op.execute("CREATE TYPE deliverystatus AS ENUM ('SENT', 'FAILED')")

    # Create users table
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY,
            email VARCHAR(255) UNIQUE,
            display_name VARCHAR(100),
            push_token VARCHAR(512),
            reminder_preferences JSONB,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        CREATE INDEX IF NOT EXISTS ix_users_email ON users(email);
    """)

    # Create reminders table
    op.execute("""
        CREATE TABLE IF NOT EXISTS reminders (
            id UUID PRIMARY KEY,
            owner_id UUID NOT NULL REFERENCES users(id),
            type remindertype NOT NULL,
            target_kind targetkind,
            target_id UUID,
            message VARCHAR(200) NOT NULL,
            deliver_in_app BOOLEAN NOT NULL DEFAULT TRUE,
            deliver_email BOOLEAN NOT NULL DEFAULT TRUE,
            deliver_push BOOLEAN NOT NULL DEFAULT FALSE,
            remind_at TIMESTAMP NOT NULL,
            snooze_until TIMESTAMP,
            status reminderstatus NOT NULL DEFAULT 'PENDING',
            is_user_created BOOLEAN NOT NULL DEFAULT TRUE,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_by UUID NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            sent_at TIMESTAMP
        );
        CREATE INDEX IF NOT EXISTS ix_reminders_owner_id ON reminders(owner_id);
        CREATE INDEX IF NOT EXISTS ix_reminders_target_id ON reminders(target_id);
        CREATE INDEX IF NOT EXISTS ix_reminders_remind_at ON reminders(remind_at);
        CREATE INDEX IF NOT EXISTS ix_reminders_status ON reminders(status);
        CREATE UNIQUE INDEX IF NOT EXISTS uq_reminders_linked_target
            ON reminders(owner_id, target_kind, target_id, type)
            WHERE is_user_created = false;
    """)

    # Create notification_deliveries table
    op.execute("""
        CREATE TABLE IF NOT EXISTS notification_deliveries (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id),
            reminder_id UUID NOT NULL REFERENCES reminders(id) ON DELETE CASCADE,
            channel notificationchannel NOT NULL,
            recipient VARCHAR(512),
            status deliverystatus NOT NULL,
            error_message VARCHAR,
            attempted_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        CREATE INDEX IF NOT EXISTS ix_notification_deliveries_user_id ON notification_deliveries(user_id);
        CREATE INDEX IF NOT EXISTS ix_notification_deliveries_reminder_id ON notification_deliveries(reminder_id);
        CREATE INDEX IF NOT EXISTS ix_notification_deliveries_status ON notification_deliveries(status);
    """)

    # Create audit_logs table
    op.execute("""
        CREATE TABLE IF NOT EXISTS audit_logs (
            id UUID PRIMARY KEY,
            actor_id UUID,
            action VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id UUID,
            details JSONB,
            timestamp TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        CREATE INDEX IF NOT EXISTS ix_audit_logs_actor_id ON audit_logs(actor_id);
        CREATE INDEX IF NOT EXISTS ix_audit_logs_action ON audit_logs(action);
        CREATE INDEX IF NOT EXISTS ix_audit_logs_entity_type ON audit_logs(entity_type);
        CREATE INDEX IF NOT EXISTS ix_audit_logs_entity_id ON audit_logs(entity_id);
        CREATE INDEX IF NOT EXISTS ix_audit_logs_timestamp ON audit_logs(timestamp);
    """)


def downgrade() -> None:
    # Drop tables in reverse order
    op.execute("DROP TABLE IF EXISTS audit_logs CASCADE")
    op.execute("DROP TABLE IF EXISTS notification_deliveries CASCADE")
    op.execute("DROP TABLE IF EXISTS reminders CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS deliverystatus")
    op.execute("DROP TYPE IF EXISTS notificationchannel")
    op.execute("DROP TYPE IF EXISTS targetkind")
    op.execute("DROP TYPE IF EXISTS reminderstatus")
    op.execute("DROP TYPE IF EXISTS remindertype")
