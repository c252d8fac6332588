"""Pydantic schemas for the delta engine API."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ComputeDeltaRequest(BaseModel):
    user_id: UUID


class Top3ItemSchema(BaseModel):
    ritual_name: str
    impact_tag: Literal["High", "Medium", "Low"]
    effort_tag: Literal["Low", "Medium", "High"]
    why: str
    how_to: str
    system_block: str
    category: str


class OpportunityScore(BaseModel):
    id: Optional[str] = None
    score: float


class ComputeDeltaResponse(BaseModel):
    engine_version: str
    top3_json: List[Top3ItemSchema]
    opportunity_scores: List[OpportunityScore]
    fallback_used: bool
    engine_run_id: Optional[UUID] = None


class AnchorReadingSchema(BaseModel):
    minutes: int
    confidence: float


class NormalizedAnchorsSchema(BaseModel):
    anchors: Dict[str, AnchorReadingSchema] = Field(default_factory=dict)
    window_mid: Optional[int] = None
    avg_confidence: float = 0.0
    rollover_flag: bool = False


class DeltaPreviewRequest(BaseModel):
    # Raw upstream payload; malformed anchors are dropped by the normalizer.
    timeline_json: Dict[str, Any] = Field(default_factory=dict)
    goal: Optional[str] = None
    has_kids: bool = False
    shift_worker: bool = False


class DeltaPreviewResponse(ComputeDeltaResponse):
    canonical_goal: str
    normalized: NormalizedAnchorsSchema
