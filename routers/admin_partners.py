# routers/admin_partners.py

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db import conflict_guard, get_db, load_for_update
from app.lead_service import partner_totals
from app.onboarding import onboarding_status, set_partner_status
from routers.auth_admin import get_current_admin, get_current_superadmin
from schemas.partners import CommissionRateUpdate, PartnerMeOut, PartnerOut, PartnerStatusUpdate
from models.partners import Partner, PartnerStatus

router = APIRouter(
    prefix="/admin/partners",
    tags=["Admin Partners"],
)

logger = logging.getLogger(__name__)


def _get_partner(db: Session, partner_id: int, *, for_update: bool = False) -> Partner:
    if for_update:
        partner = load_for_update(db, Partner, partner_id)
    else:
        partner = db.query(Partner).filter(Partner.id == partner_id).first()
    if not partner:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Partner non trovato.",
        )
    return partner


# ---------------------------------------------------------
# 1️⃣ LISTA COMPLETA PARTNER (SOLO ADMIN)
#    + filtro ?status=pending|active|suspended|rejected
# ---------------------------------------------------------
@router.get("", response_model=List[PartnerOut])
def admin_list_partners(
    partner_status: Optional[PartnerStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    q = db.query(Partner).order_by(Partner.created_at.desc(), Partner.id.desc())
    if partner_status is not None:
        q = q.filter(Partner.status == partner_status)
    return q.offset(offset).limit(limit).all()


# ---------------------------------------------------------
# 2️⃣ DETTAGLIO SINGOLO PARTNER (SOLO ADMIN)
# ---------------------------------------------------------
@router.get("/{partner_id}")
def admin_get_partner_detail(
    partner_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    """Dettaglio partner + totali derivati + stato onboarding."""
    partner = _get_partner(db, partner_id)

    detail = PartnerOut.model_validate(partner).model_dump()
    detail.update(partner_totals(db, partner.id))
    return {
        "partner": PartnerMeOut.model_validate(detail),
        "onboarding": onboarding_status(db, partner),
    }


# ---------------------------------------------------------
# 3️⃣ SOSPENDI / RIATTIVA / RIFIUTA (SOLO ADMIN)
# ---------------------------------------------------------
@router.patch("/{partner_id}/status", response_model=PartnerOut)
def admin_set_partner_status(
    partner_id: int,
    payload: PartnerStatusUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    partner = _get_partner(db, partner_id, for_update=True)
    set_partner_status(db, partner, payload.status, reason=payload.reason)

    logger.info("Admin %s: partner %s status → %s", admin.id, partner_id, partner.status.value)
    return partner


# ---------------------------------------------------------
# 4️⃣ COMMISSION RATE (SOLO SUPERADMIN)
#    vale per i lead FUTURI: le commissioni già fissate non cambiano
# ---------------------------------------------------------
@router.patch("/{partner_id}/commission-rate", response_model=PartnerOut)
def admin_set_commission_rate(
    partner_id: int,
    payload: CommissionRateUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_superadmin),
):
    partner = _get_partner(db, partner_id, for_update=True)

    old_rate = partner.commission_rate
    partner.commission_rate = payload.commission_rate

    with conflict_guard(db, f"Partner {partner.id}"):
        db.commit()
    db.refresh(partner)

    logger.info(
        "Admin %s: partner %s commission_rate %s → %s",
        admin.id,
        partner_id,
        old_rate,
        partner.commission_rate,
    )
    return partner
