# routers/partner_portal.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.dashboard import build_stats
from app.db import conflict_guard, get_db
from app.deps_partner import get_current_partner, require_active_partner
from app.errors import InvalidInput
from app.lead_service import partner_totals
from app.notifications import NotificationEmitter
from app.onboarding import onboarding_status
from models.leads import Lead
from models.partners import Partner
from schemas.partner_dashboard import DashboardOut
from schemas.partners import PartnerMeOut, PartnerOut, PartnerProfileUpdate

router = APIRouter(prefix="/partner", tags=["Partner Portal"])

logger = logging.getLogger(__name__)

# campi che non accettano null anche se opzionali nel body
NOT_NULLABLE_PROFILE_FIELDS = {
    "company_name",
    "timezone",
    "notifications_enabled",
    "email_notifications",
}


def _me_payload(db: Session, partner: Partner) -> PartnerMeOut:
    data = PartnerOut.model_validate(partner).model_dump()
    data.update(partner_totals(db, partner.id))
    return PartnerMeOut.model_validate(data)


# ---------------------------------------------------------
# 1️⃣ PROFILO
# ---------------------------------------------------------
@router.get("/me", response_model=PartnerMeOut)
def partner_me(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db),
):
    return _me_payload(db, current_partner)


@router.patch("/profile", response_model=PartnerMeOut)
def partner_update_profile(
    payload: PartnerProfileUpdate,
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db),
):
    """
    Aggiornamento parziale: solo i campi presenti nel body.
    status, onboarding_step e commission_rate NON sono modificabili qui.
    """
    updates = payload.model_dump(exclude_unset=True)

    for field in NOT_NULLABLE_PROFILE_FIELDS:
        if field in updates and updates[field] is None:
            raise InvalidInput(f"{field} cannot be null.", field=field)

    if "company_name" in updates:
        updates["company_name"] = updates["company_name"].strip()
        if not updates["company_name"]:
            raise InvalidInput("company_name cannot be blank.", field="company_name")
    if updates.get("payment_email") is not None:
        updates["payment_email"] = str(updates["payment_email"]).lower()

    for field, value in updates.items():
        setattr(current_partner, field, value)

    if updates:
        with conflict_guard(db, f"Partner {current_partner.id}"):
            db.commit()
        db.refresh(current_partner)
        logger.info("Partner %s profilo aggiornato: %s", current_partner.id, sorted(updates))

    return _me_payload(db, current_partner)


# ---------------------------------------------------------
# 2️⃣ DASHBOARD (solo partner active)
# ---------------------------------------------------------
@router.get("/dashboard", response_model=DashboardOut)
def partner_dashboard(
    current_partner: Partner = Depends(require_active_partner),
    db: Session = Depends(get_db),
):
    leads = db.query(Lead).filter(Lead.partner_id == current_partner.id).all()

    return {
        "partner": current_partner,
        "stats": build_stats(leads, tz_name=current_partner.timezone),
        "unread_notifications": NotificationEmitter(db).unread_count(current_partner.id),
    }


# ---------------------------------------------------------
# 3️⃣ STATO ONBOARDING
# ---------------------------------------------------------
@router.get("/onboarding-status")
def partner_onboarding_status(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db),
):
    return onboarding_status(db, current_partner)
