"""create device_events table

Revision ID: 0001_create_device_events
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_create_device_events"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "device_events",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("group_id", sa.String(length=100), nullable=False),
        sa.Column("source", sa.String(length=32), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("device_id", sa.String(length=255), nullable=False),
        sa.Column("event_time", sa.String(length=64), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_device_events_group_id", "device_events", ["group_id"])
    op.create_index("idx_device_events_group_time", "device_events", ["group_id", "event_time"])
    op.create_index("idx_device_events_group_type", "device_events", ["group_id", "event_type"])


def downgrade() -> None:
    op.drop_index("idx_device_events_group_type", table_name="device_events")
    op.drop_index("idx_device_events_group_time", table_name="device_events")
    op.drop_index("ix_device_events_group_id", table_name="device_events")
    op.drop_table("device_events")
