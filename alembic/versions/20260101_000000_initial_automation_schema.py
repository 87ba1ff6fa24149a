"""Initial schema for the automation engine

Revision ID: 20260101_000000
Revises: None
Create Date: 2026-01-01 00:00:00.000000

Creates the tables used by the engine:
- automations (user-authored blueprints)
- automation_runs (status, live progress snapshot, result/error)
- platform_credentials (per-user credential bundles, optionally bound to one automation)
- ai_agents (provider/model/key, rules and JSON memory)

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20260101_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


def upgrade() -> None:
    """Create all engine tables."""

    op.create_table(
        "automations",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("title", sa.String(255), nullable=False, server_default=""),
        sa.Column("blueprint", JSONType, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_automations_user_id", "user_id"),
    )

    op.create_table(
        "automation_runs",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("automation_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("trigger_data", JSONType, nullable=False),
        sa.Column("details_log", JSONType, nullable=True),
        sa.Column("result", JSONType, nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_automation_runs_automation_id", "automation_id"),
        sa.Index("ix_automation_runs_user_id", "user_id"),
    )

    op.create_table(
        "platform_credentials",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("automation_id", sa.String(64), nullable=True),
        sa.Column("platform_name", sa.String(128), nullable=False),
        sa.Column("credentials", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_platform_credentials_user_id", "user_id"),
        sa.Index("ix_platform_credentials_automation_id", "automation_id"),
    )

    op.create_table(
        "ai_agents",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("agent_name", sa.String(255), nullable=False),
        sa.Column("agent_role", sa.Text(), nullable=True),
        sa.Column("agent_goal", sa.Text(), nullable=True),
        sa.Column("agent_rules", sa.Text(), nullable=True),
        sa.Column("agent_memory", JSONType, nullable=False),
        sa.Column("llm_provider", sa.String(64), nullable=False, server_default="openai"),
        sa.Column("model", sa.String(128), nullable=True),
        sa.Column("api_key", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("ai_agents")
    op.drop_table("platform_credentials")
    op.drop_table("automation_runs")
    op.drop_table("automations")
