"""Pydantic schemas for ritual listing."""
from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


class RitualSummary(BaseModel):
    id: UUID
    name: str
    tagline: str
    category: str
    time_block: str
    color: str
    active: bool
