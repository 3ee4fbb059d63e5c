"""
app/db/session.py — SQLAlchemy engine and session factory.

Usage:
    from app.db.session import get_db

    # As a FastAPI dependency:
    def my_route(db: Session = Depends(get_db)):
        ...

    # The intake pipeline takes the factory itself:
    SqlLeadStore(SessionLocal)
"""

from typing import Any, Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings


def build_engine(url: str, **overrides: Any) -> Engine:
    """
    Create an engine with pool settings suited to the backend.

    SQLite gets no size/overflow (its pools reject them) and may be used
    from the background-task thread; server databases get a pre-pinged pool.
    """
    if url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    else:
        options = {
            "pool_pre_ping": True,       # reconnect on stale connections
            "pool_size": 5,
            "max_overflow": 10,
        }
    options.update(overrides)
    return create_engine(url, echo=False, **options)


def build_session_factory(bind: Engine) -> sessionmaker:
    # expire_on_commit=False: stored leads stay readable after their session closes
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, expire_on_commit=False)


engine = build_engine(settings.database_url)
SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a DB session and ensures it's closed."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
