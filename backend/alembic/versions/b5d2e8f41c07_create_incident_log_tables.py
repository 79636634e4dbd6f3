"""create incident log tables

Revision ID: b5d2e8f41c07
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "b5d2e8f41c07"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create incident_logs, incident_log_revisions, radio_messages and the lookup tables they read."""
    op.create_table(
        "events",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("event_name", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("event_type", sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "callsign_positions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.String(length=64), nullable=False),
        sa.Column("callsign", sa.String(length=100), nullable=True),
        sa.Column("short_code", sa.String(length=20), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_callsign_positions_event_id"), "callsign_positions", ["event_id"], unique=False)
    op.create_table(
        "callsign_assignments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("event_id", sa.String(length=64), nullable=False),
        sa.Column("position_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["position_id"], ["callsign_positions.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_callsign_assignments_user_id"), "callsign_assignments", ["user_id"], unique=False)
    op.create_index(op.f("ix_callsign_assignments_event_id"), "callsign_assignments", ["event_id"], unique=False)

    op.create_table(
        "incident_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.String(length=64), nullable=False),
        sa.Column("log_number", sa.String(length=64), nullable=False),
        sa.Column("occurrence", sa.Text(), nullable=False),
        sa.Column("action_taken", sa.Text(), nullable=False),
        sa.Column("incident_type", sa.String(length=100), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("callsign_from", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("callsign_to", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("logged_by_callsign", sa.String(length=100), nullable=True),
        sa.Column("logged_by_user_id", sa.String(length=64), nullable=True),
        sa.Column("time_of_occurrence", sa.DateTime(timezone=True), nullable=False),
        sa.Column("time_logged", sa.DateTime(timezone=True), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("entry_type", sa.String(length=20), nullable=False, server_default="contemporaneous"),
        sa.Column("retrospective_justification", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="open"),
        sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("type", sa.String(length=20), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("match_minute", sa.Integer(), nullable=True),
        sa.Column("home_score", sa.Integer(), nullable=True),
        sa.Column("away_score", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "log_number", name="uq_incident_logs_event_log_number"),
    )
    op.create_index(op.f("ix_incident_logs_event_id"), "incident_logs", ["event_id"], unique=False)
    op.create_index(op.f("ix_incident_logs_logged_by_user_id"), "incident_logs", ["logged_by_user_id"], unique=False)
    op.create_index(
        op.f("ix_incident_logs_time_of_occurrence"), "incident_logs", ["time_of_occurrence"], unique=False
    )
    op.create_index(op.f("ix_incident_logs_type"), "incident_logs", ["type"], unique=False)
    op.create_index(op.f("ix_incident_logs_created_at"), "incident_logs", ["created_at"], unique=False)

    op.create_table(
        "incident_log_revisions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("incident_log_id", sa.Integer(), nullable=False),
        sa.Column("revision_number", sa.Integer(), nullable=False),
        sa.Column("field_changed", sa.String(length=50), nullable=False),
        sa.Column("old_value", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("new_value", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("change_reason", sa.Text(), nullable=False),
        sa.Column("change_type", sa.String(length=20), nullable=False),
        sa.Column("changed_by_user_id", sa.String(length=64), nullable=True),
        sa.Column("changed_by_callsign", sa.String(length=100), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["incident_log_id"], ["incident_logs.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("incident_log_id", "revision_number", name="uq_incident_log_revisions_number"),
    )
    op.create_index(
        op.f("ix_incident_log_revisions_incident_log_id"), "incident_log_revisions", ["incident_log_id"], unique=False
    )

    op.create_table(
        "radio_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.String(length=64), nullable=False),
        sa.Column("channel", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("from_callsign", sa.String(length=100), nullable=True),
        sa.Column("to_callsign", sa.String(length=100), nullable=True),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.Column("transcription", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=20), nullable=True),
        sa.Column("priority", sa.String(length=20), nullable=True),
        sa.Column("incident_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["incident_id"], ["incident_logs.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_radio_messages_event_id"), "radio_messages", ["event_id"], unique=False)
    op.create_index(op.f("ix_radio_messages_incident_id"), "radio_messages", ["incident_id"], unique=False)


def downgrade() -> None:
    """Drop the incident log tables."""
    op.drop_index(op.f("ix_radio_messages_incident_id"), table_name="radio_messages")
    op.drop_index(op.f("ix_radio_messages_event_id"), table_name="radio_messages")
    op.drop_table("radio_messages")
    op.drop_index(op.f("ix_incident_log_revisions_incident_log_id"), table_name="incident_log_revisions")
    op.drop_table("incident_log_revisions")
    op.drop_index(op.f("ix_incident_logs_created_at"), table_name="incident_logs")
    op.drop_index(op.f("ix_incident_logs_type"), table_name="incident_logs")
    op.drop_index(op.f("ix_incident_logs_time_of_occurrence"), table_name="incident_logs")
    op.drop_index(op.f("ix_incident_logs_logged_by_user_id"), table_name="incident_logs")
    op.drop_index(op.f("ix_incident_logs_event_id"), table_name="incident_logs")
    op.drop_table("incident_logs")
    op.drop_index(op.f("ix_callsign_assignments_event_id"), table_name="callsign_assignments")
    op.drop_index(op.f("ix_callsign_assignments_user_id"), table_name="callsign_assignments")
    op.drop_table("callsign_assignments")
    op.drop_index(op.f("ix_callsign_positions_event_id"), table_name="callsign_positions")
    op.drop_table("callsign_positions")
    op.drop_table("profiles")
    op.drop_table("events")
