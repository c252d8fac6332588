"""Column types shared by the Restwell models."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON

# Timelines and engine-run payloads: JSONB on Postgres, JSON on the SQLite test database.
JSONBCompat = JSONB().with_variant(JSON(), "sqlite")


def utcnow() -> datetime:
    """Client-side timestamp default; keeps sub-second ordering on SQLite."""
    return datetime.now(timezone.utc)
