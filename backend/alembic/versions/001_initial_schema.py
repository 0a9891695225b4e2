"""Initial schema: events, participation requests, rates and endpoint hits.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Events table
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(120), nullable=False),
        sa.Column("annotation", sa.String(2000), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lon", sa.Float(), nullable=False),
        sa.Column("event_date", sa.DateTime(), nullable=False),
        sa.Column("paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("participant_limit", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("request_moderation", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("state", sa.String(16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("published_on", sa.DateTime(), nullable=True),
        sa.Column("confirmed_requests", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("participant_limit >= 0", name="check_participant_limit_non_negative"),
        sa.CheckConstraint("confirmed_requests >= 0", name="check_confirmed_non_negative"),
        sa.CheckConstraint(
            "participant_limit = 0 OR confirmed_requests <= participant_limit",
            name="check_confirmed_lte_limit",
        ),
        sa.CheckConstraint(
            "state IN ('PENDING', 'PUBLISHED', 'CANCELED')", name="check_event_state"
        ),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_owner_id", "events", ["owner_id"])
    # Public search always filters on state and orders or ranges on event_date
    op.create_index("ix_events_state_date", "events", ["state", "event_date"])

    # Participation requests
    op.create_table(
        "participation_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("requester_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "requester_id", name="uq_event_requester"),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'REJECTED', 'CANCELED')",
            name="check_request_status",
        ),
    )
    op.create_index("ix_participation_requests_id", "participation_requests", ["id"])
    op.create_index("ix_participation_requests_event_id", "participation_requests", ["event_id"])
    op.create_index(
        "ix_participation_requests_requester_id", "participation_requests", ["requester_id"]
    )

    # Likes / dislikes
    op.create_table(
        "event_rates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("rate", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_rate_user"),
        sa.CheckConstraint("rate IN (1, -1)", name="check_rate_value"),
    )
    op.create_index("ix_event_rates_event_id", "event_rates", ["event_id"])

    # Statistics: append-only access records
    op.create_table(
        "endpoint_hits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("app", sa.String(255), nullable=False),
        sa.Column("uri", sa.String(512), nullable=False),
        sa.Column("ip", sa.String(45), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
    )
    # Aggregation filters by uri list and time window
    op.create_index("ix_endpoint_hits_uri_timestamp", "endpoint_hits", ["uri", "timestamp"])
    op.create_index("ix_endpoint_hits_timestamp", "endpoint_hits", ["timestamp"])


def downgrade() -> None:
    op.drop_table("endpoint_hits")
    op.drop_table("event_rates")
    op.drop_table("participation_requests")
    op.drop_table("events")
