"""Pydantic schemas for evening plans and runtime shield events."""
from __future__ import annotations

from datetime import date as Date
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from restwell.api.schemas.timeline import HHMM_PATTERN


class EveningPlanRequest(BaseModel):
    user_id: UUID
    date: Optional[Date] = Field(default=None, description="Plan date; defaults to today in the plan timezone")
    trigger_time_anchor: Optional[str] = None
    trigger_place: Optional[str] = None
    trigger_mood: str = Field(..., min_length=1)
    shield_type: str = Field(..., min_length=1)
    shield_time: str = Field(..., pattern=HHMM_PATTERN)
    divert_ritual: str = Field(..., min_length=1)
    started_now: bool = False


class EveningPlanResponse(BaseModel):
    plan_id: UUID
    date: Date
    armed: bool


class ShieldEventRequest(BaseModel):
    user_id: UUID
    plan_id: UUID
    action: Literal["shield_done", "shield_snooze", "shield_skip"]
    reason: Optional[str] = Field(default=None, max_length=500)


class ShieldEventResponse(BaseModel):
    ok: bool = True
    completed_evening: Optional[str] = None
    skip_reason: Optional[str] = None
