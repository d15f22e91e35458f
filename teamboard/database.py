# teamboard/database.py

from contextlib import contextmanager
from typing import Iterator
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from teamboard.core.settings import settings

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

@contextmanager
def session_scope() -> Iterator[Session]:
    """Short-lived session for one unit of work outside a request (e.g. a socket message)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db() -> None:
    """Create missing tables (no migrations are shipped)."""
    import teamboard.models  # noqa: F401
    from teamboard.models.base import Base
    Base.metadata.create_all(bind=engine)
