"""Ritual listing routes."""
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import asc
from sqlalchemy.orm import Session

from restwell.api.schemas.ritual import RitualSummary
from restwell.db.deps import get_db
from restwell.db.models.ritual import Ritual

router = APIRouter()


@router.get("/rituals", response_model=List[RitualSummary], tags=["rituals"])
def list_rituals(
    user_id: UUID = Query(..., description="User ID owning the rituals"),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
) -> List[RitualSummary]:
    query = db.query(Ritual).filter(Ritual.user_id == user_id)
    if not include_inactive:
        query = query.filter(Ritual.active.is_(True))
    rows = query.order_by(asc(Ritual.time_block), asc(Ritual.name)).all()
    return [
        RitualSummary(
            id=row.id,
            name=row.name,
            tagline=row.tagline or "",
            category=row.category,
            time_block=row.time_block,
            color=row.color,
            active=bool(row.active),
        )
        for row in rows
    ]
