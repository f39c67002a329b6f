# routers/stripe_webhook.py

from __future__ import annotations

import json
import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import Forbidden, OnboardingStepSkipped
from app.onboarding import confirm_payment
from models.partners import Partner
from app.db import get_db

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])

logger = logging.getLogger(__name__)

if settings.stripe_secret_key:
    stripe.api_key = settings.stripe_secret_key


def account_ready_for_payouts(account: dict) -> bool:
    """details_submitted + payouts_enabled + nessun requisito in sospeso."""
    requirements = account.get("requirements") or {}
    currently_due = requirements.get("currently_due") or []
    return bool(
        account.get("details_submitted")
        and account.get("payouts_enabled")
        and not currently_due
    )


@router.post("/stripe-connect")
async def stripe_connect_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Stripe Connect webhook.
    - Verifica firma con STRIPE_CONNECT_WEBHOOK_SECRET
    - account.updated con account pronto ai payout → confirm_payment(True)
      per il partner collegato a quell'account.
    Tutto il resto viene ignorato con 200 (Stripe non deve ritentare).
    """
    secret = settings.stripe_connect_webhook_secret.strip()
    if not secret:
        raise HTTPException(
            status_code=500,
            detail="Stripe webhook not configured (missing STRIPE_CONNECT_WEBHOOK_SECRET)",
        )

    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    try:
        stripe.Webhook.construct_event(
            payload=payload,
            sig_header=sig_header,
            secret=secret,
        )
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("Firma webhook Stripe non valida: %s", str(e))
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    event = json.loads(payload)
    event_type = event.get("type")

    if event_type != "account.updated":
        return {"ok": True, "ignored": event_type}

    account = (event.get("data") or {}).get("object") or {}
    account_id = event.get("account") or account.get("id")

    if not account_id:
        logger.info("[stripe_connect] IGNORE account.updated senza account id")
        return {"ok": True, "ignored": "missing account id"}

    partner = db.query(Partner).filter(Partner.stripe_account_id == account_id).first()
    if not partner:
        logger.info("[stripe_connect] IGNORE account %s non collegato a nessun partner", account_id)
        return {"ok": True, "ignored": "partner not found"}

    if not account_ready_for_payouts(account):
        return {"ok": True, "ignored": "account not ready", "partner_id": partner.id}

    if partner.payment_confirmed:
        return {"ok": True, "partner_id": partner.id, "was_already_confirmed": True}

    try:
        confirm_payment(db, partner, True, payment_method="stripe", allow_early=True)
    except (Forbidden, OnboardingStepSkipped) as e:
        # partner sospeso/rifiutato: Stripe vuole comunque 200
        logger.warning("[stripe_connect] partner %s: conferma non applicata: %s", partner.id, e.message)
        return {"ok": True, "ignored": e.code, "partner_id": partner.id}

    logger.info("[stripe_connect] pagamento confermato per partner %s (%s)", partner.id, account_id)
    return {
        "ok": True,
        "partner_id": partner.id,
        "payment_confirmed": True,
        "onboarding_step": partner.onboarding_step.value,
    }
