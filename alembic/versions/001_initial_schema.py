"""Initial schema for resources, bookings, audit tables and the run log.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "trainees",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False, server_default=""),
        sa.Column("email", sa.String(256), nullable=False, server_default=""),
        sa.Column("tier", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "instructors",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False, server_default=""),
        sa.Column("email", sa.String(256), nullable=False, server_default=""),
        sa.Column("weekly_windows_json", sa.Text, nullable=False, server_default="[]"),
    )

    op.create_table(
        "aircraft",
        sa.Column("id", sa.String(16), primary_key=True),
        sa.Column("model", sa.String(64), nullable=False, server_default=""),
        sa.Column("maintenance_weekdays_json", sa.Text, nullable=False, server_default="[]"),
        sa.Column("availability_pct", sa.Integer, nullable=False, server_default=sa.text("65")),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "trainee_id", sa.String(64), sa.ForeignKey("trainees.id"),
            nullable=False, index=True,
        ),
        sa.Column("trainee_name", sa.String(256), nullable=False, server_default=""),
        sa.Column(
            "instructor_id", sa.String(64), sa.ForeignKey("instructors.id"),
            nullable=False, index=True,
        ),
        sa.Column("instructor_name", sa.String(256), nullable=False, server_default=""),
        sa.Column(
            "aircraft_id", sa.String(16), sa.ForeignKey("aircraft.id"),
            nullable=False, index=True,
        ),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("duration_minutes", sa.Integer, nullable=False, server_default=sa.text("120")),
        sa.Column("location_name", sa.String(256), nullable=False, server_default=""),
        sa.Column("location_lat", sa.Float, nullable=False),
        sa.Column("location_lon", sa.Float, nullable=False),
        sa.Column("tier", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="scheduled", index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "weather_checks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "booking_id", sa.String(64),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        sa.Column("checked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("observation_json", sa.Text, nullable=False),
        sa.Column("is_safe", sa.Boolean, nullable=False),
        sa.Column("tier", sa.String(16), nullable=False),
        sa.Column("reasons_json", sa.Text, nullable=False, server_default="[]"),
        sa.Column("forced", sa.Boolean, nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "reschedule_candidates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "booking_id", sa.String(64),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        sa.Column("suggested_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rationale", sa.Text, nullable=False),
        sa.Column("priority", sa.Integer, nullable=False),
        sa.Column("trainee_available", sa.Boolean, nullable=False, server_default=sa.text("1")),
        sa.Column("instructor_available", sa.Boolean, nullable=False, server_default=sa.text("1")),
        sa.Column("aircraft_available", sa.Boolean, nullable=False, server_default=sa.text("1")),
        sa.Column("weather_likelihood", sa.String(256), nullable=False, server_default="Unknown"),
        sa.Column("superseded", sa.Boolean, nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "workflow_runs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_bookings", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("checked_bookings", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("unsafe_bookings", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("notifications_sent", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("duration_ms", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("errors_json", sa.Text, nullable=False, server_default="[]"),
        sa.Column("dry_run", sa.Boolean, nullable=False, server_default=sa.text("0")),
        sa.Column("forced_conflict", sa.Boolean, nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "workflow_errors",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.String(64), nullable=False, index=True),
        sa.Column("error", sa.Text, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.String(64), nullable=False, index=True),
        sa.Column("trainee_id", sa.String(64), nullable=False, index=True),
        sa.Column("kind", sa.String(64), nullable=False),
        sa.Column("recipient", sa.String(256), nullable=False),
        sa.Column("subject", sa.Text, nullable=False),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("message_id", sa.String(256), nullable=True),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("workflow_errors")
    op.drop_table("workflow_runs")
    op.drop_table("reschedule_candidates")
    op.drop_table("weather_checks")
    op.drop_table("bookings")
    op.drop_table("aircraft")
    op.drop_table("instructors")
    op.drop_table("trainees")
