"""Evening plans and morning check-ins."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202410261200"
down_revision = "202410191200"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "evening_plans",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("trigger_time_anchor", sa.Text(), nullable=True),
        sa.Column("trigger_place", sa.Text(), nullable=True),
        sa.Column("trigger_mood", sa.Text(), nullable=False),
        sa.Column("shield_type", sa.Text(), nullable=False),
        sa.Column("shield_time", sa.String(length=5), nullable=False),
        sa.Column("divert_ritual", sa.Text(), nullable=False),
        sa.Column("started_now", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("armed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_evening", sa.String(length=16), nullable=True),
        sa.Column("skip_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "date", name="uq_evening_plans_user_date"),
    )

    op.create_table(
        "daily_sleep_checkins",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("sleep_rating_1_5", sa.SmallInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_sleep_checkins_user_date"),
        sa.CheckConstraint("sleep_rating_1_5 BETWEEN 1 AND 5", name="ck_daily_sleep_checkins_rating"),
    )


def downgrade() -> None:
    op.drop_table("daily_sleep_checkins")
    op.drop_table("evening_plans")
