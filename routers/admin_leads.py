# routers/admin_leads.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.lead_service import get_lead, list_leads, mark_commission_paid, transition_lead
from routers.auth_admin import get_current_admin
from schemas.leads import LeadListOut, LeadOut, LeadStatusUpdate

router = APIRouter(prefix="/admin/leads", tags=["Admin Leads"])

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# 1️⃣ LISTA LEAD (filtri partner / status)
# ---------------------------------------------------------
@router.get("", response_model=LeadListOut)
def admin_list_leads(
    partner_id: Optional[int] = Query(default=None),
    status: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    leads, total = list_leads(db, partner_id=partner_id, status=status, limit=limit, offset=offset)
    return {"items": leads, "total": total}


# ---------------------------------------------------------
# 2️⃣ CAMBIO STATUS (stessa state machine del partner)
# ---------------------------------------------------------
@router.patch("/{lead_id}", response_model=LeadOut)
def admin_update_lead_status(
    lead_id: int,
    payload: LeadStatusUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    lead = get_lead(db, lead_id, for_update=True)
    lead = transition_lead(db, lead, payload.status)
    logger.info("Admin %s: lead %s → %s", admin.id, lead_id, lead.status.value)
    return lead


# ---------------------------------------------------------
# 3️⃣ COMMISSIONE PAGATA
# ---------------------------------------------------------
@router.post("/{lead_id}/commission-paid", response_model=LeadOut)
def admin_mark_commission_paid(
    lead_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    lead = get_lead(db, lead_id, for_update=True)
    return mark_commission_paid(db, lead)
