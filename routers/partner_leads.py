# routers/partner_leads.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps_partner import require_active_partner
from app.lead_service import create_lead, get_partner_lead, list_leads, transition_lead
from models.partners import Partner
from schemas.leads import LeadCreate, LeadListOut, LeadOut, LeadStatusUpdate

router = APIRouter(prefix="/partner/leads", tags=["Partner Leads"])


@router.get("", response_model=LeadListOut)
def partner_list_leads(
    status: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    current_partner: Partner = Depends(require_active_partner),
    db: Session = Depends(get_db),
):
    leads, total = list_leads(
        db, partner_id=current_partner.id, status=status, limit=limit, offset=offset
    )
    return {"items": leads, "total": total}


@router.post("", response_model=LeadOut, status_code=201)
def partner_create_lead(
    payload: LeadCreate,
    current_partner: Partner = Depends(require_active_partner),
    db: Session = Depends(get_db),
):
    return create_lead(
        db,
        current_partner,
        client_name=payload.client_name,
        client_email=payload.client_email,
        client_phone=payload.client_phone,
        service=payload.service,
        service_value=payload.service_value,
        commission=payload.commission,
    )


@router.get("/{lead_id}", response_model=LeadOut)
def partner_get_lead(
    lead_id: int,
    current_partner: Partner = Depends(require_active_partner),
    db: Session = Depends(get_db),
):
    return get_partner_lead(db, current_partner, lead_id)


@router.patch("/{lead_id}", response_model=LeadOut)
def partner_update_lead_status(
    lead_id: int,
    payload: LeadStatusUpdate,
    current_partner: Partner = Depends(require_active_partner),
    db: Session = Depends(get_db),
):
    lead = get_partner_lead(db, current_partner, lead_id, for_update=True)
    return transition_lead(db, lead, payload.status)
