"""Database utilities and models."""

from restwell.db.base import Base
from restwell.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
