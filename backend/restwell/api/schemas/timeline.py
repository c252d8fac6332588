"""Pydantic schemas for storing upstream timelines."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

HHMM_PATTERN = r"^\d{2}:\d{2}$"


class TimelineAnchor(BaseModel):
    name: str = Field(..., min_length=1, max_length=60)
    time: str = Field(..., pattern=HHMM_PATTERN)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class TimelineJson(BaseModel):
    wake_time: str = Field(..., pattern=HHMM_PATTERN)
    bedtime_target: str = Field(..., pattern=HHMM_PATTERN)
    bedtime_window: str = ""
    anchors: List[TimelineAnchor] = Field(..., min_length=1)
    notes: Optional[str] = None


class TimelineCreateRequest(BaseModel):
    user_id: UUID
    timeline_json: TimelineJson


class TimelineCreateResponse(BaseModel):
    id: UUID
    user_id: UUID
    created_at: datetime
    anchors_count: int
    bedtime_window: str
