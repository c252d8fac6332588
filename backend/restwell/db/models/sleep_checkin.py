"""Morning check-in ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, SmallInteger, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from restwell.db.base import Base


class DailySleepCheckin(Base):
    __tablename__ = "daily_sleep_checkins"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_sleep_checkins_user_date"),
        CheckConstraint("sleep_rating_1_5 BETWEEN 1 AND 5", name="ck_daily_sleep_checkins_rating"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    sleep_rating_1_5 = Column(SmallInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
