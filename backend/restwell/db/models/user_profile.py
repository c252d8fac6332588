"""User profile ORM model (goal and life-context flags)."""
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from restwell.db.base import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    preferred_name = Column(Text, nullable=True)
    goal = Column(Text, nullable=True)
    bedtime_window = Column(Text, nullable=True)
    has_kids = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    shift_worker = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
