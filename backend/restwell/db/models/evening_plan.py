"""Evening plan ORM model: tonight's trigger, shield and divert ritual."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String, Text, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from restwell.db.base import Base


class EveningPlan(Base):
    __tablename__ = "evening_plans"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_evening_plans_user_date"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    trigger_time_anchor = Column(Text, nullable=True)
    trigger_place = Column(Text, nullable=True)
    trigger_mood = Column(Text, nullable=False)
    shield_type = Column(Text, nullable=False)
    shield_time = Column(String(5), nullable=False)
    divert_ritual = Column(Text, nullable=False)
    started_now = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    armed_at = Column(DateTime(timezone=True), nullable=True)
    # done | partly | skipped, set by shield events or the morning check-in
    completed_evening = Column(String(16), nullable=True)
    skip_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
