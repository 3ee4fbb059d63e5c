"""
api/endpoints/lead_routes.py — Admin routes over stored leads.

GET    /leads              — List leads (filterable by status)
GET    /leads/stats        — Aggregate counts by status
GET    /leads/{id}         — Get a single lead with its enrichment
PATCH  /leads/{id}/status  — Update lead status manually
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.db.models import LeadStatus
from app.db import repository
from api.schemas import LeadOut, LeadStatusUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[LeadOut], summary="List leads")
def list_leads(
    status: Optional[LeadStatus] = Query(
        default=None,
        description="Filter by status. Omit to return all leads.",
    ),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Return leads newest first, optionally filtered by status."""
    if status:
        return repository.get_leads_by_status(db, status=status, limit=limit)
    return repository.list_leads(db, limit=limit)


@router.get("/stats", summary="Lead counts by status")
def lead_stats(db: Session = Depends(get_db)):
    return repository.count_leads_by_status(db)


@router.get("/{lead_id}", response_model=LeadOut, summary="Get lead by ID")
def get_lead(lead_id: int, db: Session = Depends(get_db)):
    lead = repository.get_lead(db, lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found.")
    return lead


@router.patch("/{lead_id}/status", response_model=LeadOut, summary="Update lead status")
def patch_lead_status(
    lead_id: int,
    payload: LeadStatusUpdate,
    db: Session = Depends(get_db),
):
    """
    Manually update the status of a lead.
    Valid statuses: new, contacted, converted, rejected, spam.
    """
    lead = repository.get_lead(db, lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found.")
    repository.update_lead_status(db, lead_id, payload.status)
    db.commit()
    db.refresh(lead)
    logger.info("Lead %d status updated to %s via API.", lead_id, payload.status.value)
    return lead
