"""Helpers for working with users and their profiles."""
from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restwell.db.models.user import User
from restwell.db.models.user_profile import UserProfile

PROFILE_FIELDS = ("preferred_name", "goal", "bedtime_window", "has_kids", "shift_worker")


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Fetch an existing user or create a new row safely."""
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def upsert_profile(db: Session, user_id: UUID, changes: Dict[str, Any]) -> UserProfile:
    """Create or update the profile row; only known fields present in ``changes`` are written."""
    get_or_create_user(db, user_id)
    profile = db.get(UserProfile, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id, has_kids=False, shift_worker=False)
        db.add(profile)

    for name in PROFILE_FIELDS:
        if name in changes:
            setattr(profile, name, changes[name])
    db.flush()
    return profile


def user_context_for(profile: UserProfile | None) -> Dict[str, bool]:
    """Life-context flags the delta engine uses for effort overrides."""
    if profile is None:
        return {"has_kids": False, "shift_worker": False}
    return {"has_kids": bool(profile.has_kids), "shift_worker": bool(profile.shift_worker)}
