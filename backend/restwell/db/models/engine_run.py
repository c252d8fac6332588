"""Engine run ORM model: the persisted output of one delta computation."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from restwell.db.base import Base
from restwell.db.types import JSONBCompat, utcnow


class EngineRun(Base):
    __tablename__ = "engine_runs"
    __table_args__ = (Index("ix_engine_runs_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    timeline_id = Column(UUID(as_uuid=True), ForeignKey("timelines.id", ondelete="SET NULL"), nullable=True)
    engine_version = Column(String(32), nullable=False)
    goal = Column(Text, nullable=False)
    top3_json = Column(JSONBCompat, nullable=False, default=list)
    opportunity_scores = Column(JSONBCompat, nullable=False, default=list)
    fallback_used = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
