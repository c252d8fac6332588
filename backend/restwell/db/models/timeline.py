"""Timeline ORM model: one normalized intake per row."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import UUID

from restwell.db.base import Base
from restwell.db.types import JSONBCompat, utcnow


class Timeline(Base):
    __tablename__ = "timelines"
    __table_args__ = (Index("ix_timelines_user_id_created_at", "user_id", "created_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    timeline_json = Column(JSONBCompat, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
