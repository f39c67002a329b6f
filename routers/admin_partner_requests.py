# routers/admin_partner_requests.py

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from decimal import Decimal
import logging

from app.config import settings
from app.db import get_db
from app.notifications import NotificationEmitter
from app.onboarding import start_onboarding

from models.admin import Admin
from models.partner_requests import PartnerRequest, PartnerRequestStatus
from models.partners import OnboardingStep, Partner, PartnerStatus

from schemas.partner_requests import PartnerRequestApprove, PartnerRequestOut

from routers.auth_admin import get_current_admin

# EMAIL SERVICE (app/email_service.py)
from app.email_service import (
    send_partner_request_approved_email,
    send_partner_request_rejected_email,
)

router = APIRouter(prefix="/admin/partner-requests", tags=["Admin - Partner Requests"])

logger = logging.getLogger(__name__)

# Commissione di default per i nuovi partner (override in approvazione)
DEFAULT_COMMISSION_RATE = Decimal("10.00")


def _get_pending_request(db: Session, request_id: int) -> PartnerRequest:
    req = db.query(PartnerRequest).filter(PartnerRequest.id == request_id).first()
    if not req:
        raise HTTPException(status_code=404, detail="Request not found.")

    if req.status != PartnerRequestStatus.PENDING:
        raise HTTPException(status_code=400, detail="Request is not PENDING.")
    return req


@router.get("", response_model=list[PartnerRequestOut])
def list_partner_requests(
    status: PartnerRequestStatus | None = Query(default=None),
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    q = db.query(PartnerRequest)
    if status:
        q = q.filter(PartnerRequest.status == status)
    return q.order_by(PartnerRequest.id.desc()).all()


@router.post("/{request_id}/reject", response_model=PartnerRequestOut)
def reject_partner_request(
    request_id: int,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    req = _get_pending_request(db, request_id)

    req.status = PartnerRequestStatus.REJECTED
    db.add(req)
    db.commit()
    db.refresh(req)

    logger.info("Candidatura %s rifiutata da admin %s", request_id, admin.id)

    # ---- invio email (NON BLOCCANTE) ----
    try:
        send_partner_request_rejected_email(
            to_email=req.email,
            company_name=req.company_name,
        )
    except Exception as e:
        logger.warning(
            "Email REJECT fallita per request_id=%s (%s): %s",
            request_id,
            req.email,
            str(e),
        )

    return req


@router.post("/{request_id}/approve", response_model=PartnerRequestOut)
def approve_partner_request(
    request_id: int,
    payload: PartnerRequestApprove | None = Body(default=None),
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    Approva la candidatura e crea il Partner.

    Il partner nasce con status pending: diventa active solo completando
    l'onboarding (agreement firmati + pagamento confermato + activate).
    """
    req = _get_pending_request(db, request_id)

    if db.query(Partner).filter(Partner.user_id == req.user_id).first():
        raise HTTPException(status_code=409, detail="This user already has a partner account.")

    rate = DEFAULT_COMMISSION_RATE
    if payload is not None and payload.commission_rate is not None:
        rate = payload.commission_rate

    # ---- crea Partner ----
    partner = Partner(
        user_id=req.user_id,
        company_name=req.company_name,
        email=req.email,
        contact_name=req.contact_name,
        website=req.website,
        status=PartnerStatus.PENDING,
        onboarding_step=OnboardingStep.APPLIED,
        commission_rate=rate,
        payment_confirmed=False,
        timezone=settings.default_timezone,
    )
    db.add(partner)
    db.flush()

    # applied -> agreements_pending (-> agreements_complete se non ci sono agreement richiesti)
    NotificationEmitter(db).publish(start_onboarding(db, partner))

    # ---- aggiorna richiesta ----
    req.status = PartnerRequestStatus.APPROVED
    req.partner_id = partner.id
    db.add(req)

    db.commit()
    db.refresh(req)

    logger.info(
        "Candidatura %s approvata da admin %s → partner_id=%s (rate %s%%)",
        request_id,
        admin.id,
        partner.id,
        rate,
    )

    # ---- invio email (NON BLOCCANTE) ----
    try:
        send_partner_request_approved_email(
            to_email=req.email,
            company_name=req.company_name,
            commission_rate=str(rate),
        )
    except Exception as e:
        logger.warning(
            "Email APPROVE fallita per request_id=%s (%s): %s",
            request_id,
            req.email,
            str(e),
        )

    return req
