"""Engine and session factory bound to the configured database."""
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from restwell.core.config import settings


@lru_cache
def get_session_factory() -> sessionmaker:
    """Create the engine on first use so imports never open connections."""
    engine = create_engine(settings.database_url, pool_pre_ping=True, future=True)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
