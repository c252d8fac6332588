"""Ritual ORM model: a user's active routine items."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from restwell.db.base import Base


class Ritual(Base):
    __tablename__ = "rituals"
    __table_args__ = (
        UniqueConstraint("user_id", "category", "time_block", "name", name="uq_rituals_user_category_block_name"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    tagline = Column(Text, nullable=False, server_default=sa_text("''"), default="")
    category = Column(String(16), nullable=False)
    time_block = Column(String(16), nullable=False)
    color = Column(String(16), nullable=False)
    active = Column(Boolean, nullable=False, server_default=sa_text("true"), default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
