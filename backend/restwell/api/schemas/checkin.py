"""Pydantic schemas for the morning check-in."""
from __future__ import annotations

from datetime import date as Date
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class MorningCheckinRequest(BaseModel):
    user_id: UUID
    date: Optional[Date] = None
    sleep_rating_1_5: int = Field(..., ge=1, le=5)
    completed_evening: Literal["done", "partly", "skipped"]


class MorningCheckinResponse(BaseModel):
    ok: bool = True
    closed_evening_for: Optional[Date] = None
    warning: Optional[str] = None
