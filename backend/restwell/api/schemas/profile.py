"""Pydantic schemas for the profile API."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ProfileUpdateRequest(BaseModel):
    user_id: UUID
    preferred_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    goal: Optional[str] = Field(default=None, max_length=100)
    bedtime_window: Optional[str] = Field(default=None, max_length=40)
    has_kids: Optional[bool] = None
    shift_worker: Optional[bool] = None


class ProfileResponse(BaseModel):
    user_id: UUID
    preferred_name: Optional[str] = None
    goal: Optional[str] = None
    canonical_goal: str
    bedtime_window: Optional[str] = None
    has_kids: bool
    shift_worker: bool
