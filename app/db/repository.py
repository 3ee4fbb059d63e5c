"""
app/db/repository.py — All database read/write operations.

Business logic should never write raw SQL or ORM queries directly —
everything goes through this module. This keeps DB logic centralized
and easy to test/mock.

SqlLeadStore at the bottom is the create/update interface the intake
pipeline talks to; each call runs in its own committed transaction.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Generator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import Lead, LeadStatus
from app.exceptions import LeadPersistenceError

logger = logging.getLogger(__name__)

# Columns the pipeline may set; anything else is a programming error
WRITABLE_FIELDS = frozenset(
    c for c in Lead.__table__.columns.keys() if c not in {"id", "created_at", "updated_at"}
)


# ── Lead ─────────────────────────────────────────────────────────────────────

def create_lead(db: Session, **fields: Any) -> Lead:
    """Create and flush a new Lead. Status defaults to NEW."""
    unknown = set(fields) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown lead fields: {sorted(unknown)}")

    fields.setdefault("status", LeadStatus.NEW)
    lead = Lead(**fields)
    db.add(lead)
    db.flush()
    logger.info("Lead created: id=%d status=%s", lead.id, lead.status.value)
    return lead


def get_lead(db: Session, lead_id: int) -> Optional[Lead]:
    return db.get(Lead, lead_id)


def update_lead(db: Session, lead_id: int, fields: dict[str, Any]) -> bool:
    """Apply a partial update. Returns False if the lead doesn't exist."""
    unknown = set(fields) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown lead fields: {sorted(unknown)}")

    updated = db.query(Lead).filter(Lead.id == lead_id).update(fields)
    logger.debug("Lead %d updated: %s", lead_id, sorted(fields))
    return updated > 0


def get_leads_by_status(db: Session, status: LeadStatus, limit: int = 50) -> list[Lead]:
    """Fetch leads filtered by status, newest first."""
    return (
        db.query(Lead)
        .filter(Lead.status == status)
        .order_by(Lead.created_at.desc(), Lead.id.desc())
        .limit(limit)
        .all()
    )


def list_leads(db: Session, limit: int = 50) -> list[Lead]:
    return db.query(Lead).order_by(Lead.created_at.desc(), Lead.id.desc()).limit(limit).all()


def update_lead_status(db: Session, lead_id: int, status: LeadStatus) -> None:
    """Update the status of a lead."""
    db.query(Lead).filter(Lead.id == lead_id).update({"status": status})
    logger.debug("Lead %d status → %s", lead_id, status)


def count_leads_by_status(db: Session) -> dict[str, int]:
    """Lead counts per status, plus a total."""
    stats = {}
    for status in LeadStatus:
        stats[status.value] = db.query(Lead).filter(Lead.status == status).count()
    stats["total"] = sum(stats.values())
    return stats


# ── Store used by the intake pipeline ─────────────────────────────────────────

class SqlLeadStore:
    """
    create/update over a session factory.

    Args:
        session_factory: A sessionmaker (or any zero-arg callable returning a Session).
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def create(self, fields: dict[str, Any]) -> int:
        """Insert a lead and commit. Returns its id once durable."""
        try:
            with self._session() as db:
                lead = create_lead(db, **fields)
                lead_id = lead.id
        except SQLAlchemyError as exc:
            logger.error("Failed to create lead: %s", exc)
            raise LeadPersistenceError("could not store lead") from exc
        return lead_id

    def update(self, lead_id: int, fields: dict[str, Any]) -> None:
        """Apply and commit a partial update."""
        try:
            with self._session() as db:
                found = update_lead(db, lead_id, fields)
        except SQLAlchemyError as exc:
            logger.error("Failed to update lead %d: %s", lead_id, exc)
            raise LeadPersistenceError(f"could not update lead {lead_id}") from exc
        if not found:
            raise LeadPersistenceError(f"lead {lead_id} not found")

    def get(self, lead_id: int) -> Optional[Lead]:
        with self._session() as db:
            return get_lead(db, lead_id)
