# routers/partner_onboarding.py
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps_partner import require_onboarding_partner
from app.onboarding import (
    activate,
    agreements_with_status,
    begin_payment_setup,
    compute_progress,
    confirm_payment,
    onboarding_status,
    sign_agreement,
)
from models.partners import Partner
from schemas.agreements import (
    AgreementAccept,
    AgreementAcceptOut,
    AgreementListOut,
    AgreementOut,
    AgreementWithStatus,
    SignatureOut,
)
from schemas.partner_dashboard import PaymentSetupIn
from schemas.partners import PartnerOut

router = APIRouter(prefix="/partner", tags=["Partner Onboarding"])

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# 1️⃣ AGREEMENTS
# ---------------------------------------------------------
@router.get("/agreements", response_model=AgreementListOut)
def list_agreements(
    current_partner: Partner = Depends(require_onboarding_partner),
    db: Session = Depends(get_db),
):
    items = agreements_with_status(db, current_partner.id)

    agreements = []
    for agreement, signature in items:
        data = AgreementOut.model_validate(agreement).model_dump()
        data["signed"] = signature is not None
        data["signed_at"] = signature.signed_at if signature is not None else None
        agreements.append(AgreementWithStatus.model_validate(data))

    return {
        "agreements": agreements,
        "progress": compute_progress(items).as_dict(),
    }


@router.post("/agreements/{agreement_id}/accept", response_model=AgreementAcceptOut)
def accept_agreement(
    agreement_id: int,
    payload: AgreementAccept,
    request: Request,
    current_partner: Partner = Depends(require_onboarding_partner),
    db: Session = Depends(get_db),
):
    signature, progress = sign_agreement(
        db,
        current_partner,
        agreement_id,
        payload.signature_text,
        signed_by_user_id=current_partner.user_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    return {
        "signature": SignatureOut.model_validate(signature),
        "progress": progress.as_dict(),
        "onboarding_step": current_partner.onboarding_step.value,
    }


# ---------------------------------------------------------
# 2️⃣ PAYMENT SETUP (esito opaco dal provider)
# ---------------------------------------------------------
@router.post("/onboarding/payment/start")
def onboarding_payment_start(
    current_partner: Partner = Depends(require_onboarding_partner),
    db: Session = Depends(get_db),
):
    """agreements_complete -> payment_pending, prima dell'esito del provider."""
    begin_payment_setup(db, current_partner)
    return onboarding_status(db, current_partner)


@router.post("/onboarding/payment")
def onboarding_payment(
    payload: PaymentSetupIn,
    current_partner: Partner = Depends(require_onboarding_partner),
    db: Session = Depends(get_db),
):
    confirm_payment(
        db,
        current_partner,
        payload.confirmed,
        payment_method=payload.payment_method,
        payment_email=str(payload.payment_email).lower() if payload.payment_email else None,
        stripe_account_id=payload.stripe_account_id,
    )
    return onboarding_status(db, current_partner)


# ---------------------------------------------------------
# 3️⃣ ATTIVAZIONE
# ---------------------------------------------------------
@router.post("/onboarding/activate", response_model=PartnerOut)
def onboarding_activate(
    current_partner: Partner = Depends(require_onboarding_partner),
    db: Session = Depends(get_db),
):
    return activate(db, current_partner)
