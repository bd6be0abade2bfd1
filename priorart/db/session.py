# priorart/db/session.py
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from priorart.core.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # sync endpoints run in a threadpool
        return {"connect_args": {"check_same_thread": False}}
    # recompute workers hold sessions across idle periods
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Request-scoped session for FastAPI dependencies."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
