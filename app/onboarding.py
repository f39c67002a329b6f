# app/onboarding.py
"""
Onboarding partner.

    applied -> agreements_pending -> agreements_complete -> payment_pending -> active

Ogni passaggio ha una guardia (agreement firmati, pagamento confermato).
Saltare uno step solleva OnboardingStepSkipped senza toccare il partner.
Partner.status passa da pending ad active SOLO tramite activate().
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db import conflict_guard
from app.email_service import dispatch_event_emails
from app.errors import (
    AcknowledgmentRequired,
    Forbidden,
    InvalidInput,
    NotFound,
    OnboardingStepSkipped,
)
from app.events import DomainEvent
from app.notifications import NotificationEmitter
from models.agreements import Agreement, AgreementSignature
from models.notifications import NotificationType
from models.partners import OnboardingStep, Partner, PartnerStatus

logger = logging.getLogger(__name__)

STEP_TRANSITIONS: dict[OnboardingStep, frozenset[OnboardingStep]] = {
    OnboardingStep.APPLIED: frozenset({OnboardingStep.AGREEMENTS_PENDING}),
    OnboardingStep.AGREEMENTS_PENDING: frozenset({OnboardingStep.AGREEMENTS_COMPLETE}),
    OnboardingStep.AGREEMENTS_COMPLETE: frozenset({OnboardingStep.PAYMENT_PENDING}),
    OnboardingStep.PAYMENT_PENDING: frozenset({OnboardingStep.ACTIVE}),
    OnboardingStep.ACTIVE: frozenset(),
}

_STEP_ORDER = {step: i for i, step in enumerate(OnboardingStep)}

NEXT_ACTION: dict[OnboardingStep, Optional[str]] = {
    OnboardingStep.APPLIED: "start_onboarding",
    OnboardingStep.AGREEMENTS_PENDING: "sign_agreements",
    OnboardingStep.AGREEMENTS_COMPLETE: "payment_setup",
    OnboardingStep.PAYMENT_PENDING: "confirm_payment",
    OnboardingStep.ACTIVE: None,
}

# Cambi di status amministrativi. pending -> active NON è qui: passa da activate().
PARTNER_STATUS_TRANSITIONS: dict[PartnerStatus, frozenset[PartnerStatus]] = {
    PartnerStatus.PENDING: frozenset({PartnerStatus.REJECTED}),
    PartnerStatus.ACTIVE: frozenset({PartnerStatus.SUSPENDED}),
    PartnerStatus.SUSPENDED: frozenset({PartnerStatus.ACTIVE}),
    PartnerStatus.REJECTED: frozenset(),
}


@dataclass(frozen=True)
class OnboardingProgress:
    total: int
    signed: int
    remaining: int

    @property
    def all_signed(self) -> bool:
        return self.remaining == 0

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "signed": self.signed,
            "remaining": self.remaining,
            "all_signed": self.all_signed,
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


def content_hash(content: str) -> str:
    return hashlib.sha256((content or "").encode("utf-8")).hexdigest()


# ---------------------------------------------------------
# PROGRESS (derivato, mai salvato)
# ---------------------------------------------------------
def agreements_with_status(db: Session, partner_id: int) -> list[tuple[Agreement, Optional[AgreementSignature]]]:
    agreements = (
        db.query(Agreement)
        .filter(Agreement.is_active.is_(True))
        .order_by(Agreement.sort_order.asc(), Agreement.id.asc())
        .all()
    )
    signatures = {
        s.agreement_id: s
        for s in db.query(AgreementSignature).filter(AgreementSignature.partner_id == partner_id).all()
    }
    return [(a, signatures.get(a.id)) for a in agreements]


def compute_progress(items: list[tuple[Agreement, Optional[AgreementSignature]]]) -> OnboardingProgress:
    required = [(a, s) for a, s in items if a.is_required]
    signed = sum(1 for _, s in required if s is not None)
    return OnboardingProgress(total=len(required), signed=signed, remaining=len(required) - signed)


def signing_progress(db: Session, partner_id: int) -> OnboardingProgress:
    return compute_progress(agreements_with_status(db, partner_id))


# ---------------------------------------------------------
# TRANSITION TABLE
# ---------------------------------------------------------
def _ensure_can_onboard(partner: Partner) -> None:
    if partner.status in (PartnerStatus.SUSPENDED, PartnerStatus.REJECTED):
        raise Forbidden(
            f"Partner account is {partner.status.value}.",
            reason=f"partner_{partner.status.value}",
        )


def advance(
    partner: Partner,
    target: OnboardingStep,
    progress: OnboardingProgress,
    *,
    now: Optional[datetime] = None,
) -> list[DomainEvent]:
    """
    Sposta il partner allo step `target` (in memoria) e ritorna gli eventi.
    Stesso step -> nessun evento. Step non adiacente o guardia non
    soddisfatta -> OnboardingStepSkipped, partner invariato.
    """
    _ensure_can_onboard(partner)
    current = partner.onboarding_step

    if target == current:
        return []

    if target not in STEP_TRANSITIONS[current]:
        raise OnboardingStepSkipped(
            f"Cannot move from {current.value} to {target.value}.",
            current_step=current.value,
            requested_step=target.value,
            next_action=NEXT_ACTION[current],
        )

    if target in (
        OnboardingStep.AGREEMENTS_COMPLETE,
        OnboardingStep.PAYMENT_PENDING,
        OnboardingStep.ACTIVE,
    ) and not progress.all_signed:
        raise OnboardingStepSkipped(
            f"{progress.remaining} required agreement(s) still to sign.",
            current_step=current.value,
            requested_step=target.value,
            next_action="sign_agreements",
            progress=progress.as_dict(),
        )

    if target == OnboardingStep.ACTIVE and not partner.payment_confirmed:
        raise OnboardingStepSkipped(
            "Payment setup has not been confirmed yet.",
            current_step=current.value,
            requested_step=target.value,
            next_action="confirm_payment",
        )

    now = now or _now()
    partner.onboarding_step = target
    logger.info("Partner %s onboarding: %s -> %s", partner.id, current.value, target.value)

    events: list[DomainEvent] = []
    if target == OnboardingStep.AGREEMENTS_COMPLETE:
        events.append(DomainEvent(
            partner_id=partner.id,
            type=NotificationType.AGREEMENTS_COMPLETED,
            title="All agreements signed",
            message="All agreements signed! You can now proceed to payment details.",
            data={"progress": progress.as_dict()},
        ))
    elif target == OnboardingStep.ACTIVE:
        partner.status = PartnerStatus.ACTIVE
        partner.activated_at = now
        events.append(DomainEvent(
            partner_id=partner.id,
            type=NotificationType.ACCOUNT_APPROVED,
            title="Your partner account is active",
            message="Onboarding complete. You now have full access to your partner dashboard.",
            data={"commission_rate": str(partner.commission_rate)},
        ))
    return events


def _commit(db: Session, partner: Partner, events: list[DomainEvent]) -> None:
    with conflict_guard(db, f"Partner {partner.id}"):
        NotificationEmitter(db).publish(events)
        db.commit()
    db.refresh(partner)
    dispatch_event_emails(partner, events)


# ---------------------------------------------------------
# START (all'approvazione della candidatura)
# ---------------------------------------------------------
def start_onboarding(db: Session, partner: Partner) -> list[DomainEvent]:
    """
    Non fa commit: lo fa il chiamante (approvazione candidatura), che
    pubblica anche gli eventi ritornati.
    Senza agreement richiesti il partner passa subito ad agreements_complete.
    """
    progress = signing_progress(db, partner.id)
    events = advance(partner, OnboardingStep.AGREEMENTS_PENDING, progress)
    if progress.all_signed:
        events += advance(partner, OnboardingStep.AGREEMENTS_COMPLETE, progress)
    return events


def sync_agreements_step(
    db: Session,
    partner: Partner,
    progress: Optional[OnboardingProgress] = None,
) -> OnboardingProgress:
    """
    agreements_pending con tutti gli agreement richiesti già firmati
    (nessuno configurato, oppure uno disattivato dall'admin dopo le firme)
    -> agreements_complete. Fa commit solo se lo step cambia.
    """
    if progress is None:
        progress = signing_progress(db, partner.id)
    if (
        partner.onboarding_step == OnboardingStep.AGREEMENTS_PENDING
        and progress.all_signed
        and partner.status not in (PartnerStatus.SUSPENDED, PartnerStatus.REJECTED)
    ):
        _commit(db, partner, advance(partner, OnboardingStep.AGREEMENTS_COMPLETE, progress))
    return progress


# ---------------------------------------------------------
# SIGN
# ---------------------------------------------------------
def sign_agreement(
    db: Session,
    partner: Partner,
    agreement_id: int,
    signature_text: Optional[str],
    *,
    signed_by_user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> tuple[AgreementSignature, OnboardingProgress]:
    """
    Firma append-only: una seconda firma ritorna quella esistente
    (stesso signed_at), senza errori e senza nuove notifiche.
    """
    if signature_text is None or not str(signature_text).strip():
        raise AcknowledgmentRequired(
            "You must confirm that you have read and agree to the agreement before signing."
        )

    _ensure_can_onboard(partner)

    agreement = db.get(Agreement, agreement_id)
    if agreement is None or not agreement.is_active:
        raise NotFound("Agreement not found.")

    existing = _find_signature(db, partner.id, agreement.id)
    if existing is not None:
        return existing, sync_agreements_step(db, partner)

    signature = AgreementSignature(
        partner_id=partner.id,
        agreement_id=agreement.id,
        signed_at=_now(),
        signature_text=str(signature_text).strip()[:500],
        signed_by_user_id=signed_by_user_id,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:500] or None,
        agreement_version=agreement.version,
        content_hash=content_hash(agreement.content),
    )
    db.add(signature)
    try:
        db.flush()
    except IntegrityError:
        # firma concorrente sullo stesso agreement: vince la prima
        db.rollback()
        existing = _find_signature(db, partner.id, agreement.id)
        if existing is None:
            raise
        return existing, sync_agreements_step(db, partner)

    events = [DomainEvent(
        partner_id=partner.id,
        type=NotificationType.AGREEMENT_SIGNED,
        title="Agreement signed",
        message=f"You signed \"{agreement.title}\" (v{agreement.version}).",
        data={"agreement_id": agreement.id, "version": agreement.version},
    )]

    progress = signing_progress(db, partner.id)

    if partner.onboarding_step == OnboardingStep.APPLIED:
        events += advance(partner, OnboardingStep.AGREEMENTS_PENDING, progress)
    if partner.onboarding_step == OnboardingStep.AGREEMENTS_PENDING and progress.all_signed:
        events += advance(partner, OnboardingStep.AGREEMENTS_COMPLETE, progress)

    _commit(db, partner, events)
    db.refresh(signature)

    logger.info(
        "Partner %s ha firmato agreement %s (%s/%s)",
        partner.id,
        agreement.id,
        progress.signed,
        progress.total,
    )
    return signature, progress


def _find_signature(db: Session, partner_id: int, agreement_id: int) -> Optional[AgreementSignature]:
    return (
        db.query(AgreementSignature)
        .filter(
            AgreementSignature.partner_id == partner_id,
            AgreementSignature.agreement_id == agreement_id,
        )
        .first()
    )


# ---------------------------------------------------------
# PAYMENT SETUP
# ---------------------------------------------------------
def begin_payment_setup(db: Session, partner: Partner) -> Partner:
    progress = sync_agreements_step(db, partner)
    events = advance(partner, OnboardingStep.PAYMENT_PENDING, progress)
    _commit(db, partner, events)
    return partner


def confirm_payment(
    db: Session,
    partner: Partner,
    confirmed: bool,
    *,
    payment_method: Optional[str] = None,
    payment_email: Optional[str] = None,
    stripe_account_id: Optional[str] = None,
    allow_early: bool = False,
) -> Partner:
    """
    Registra l'esito (opaco) del setup pagamento.
    allow_early: il webhook del provider può arrivare prima della firma
    degli agreement; in quel caso salviamo solo il flag senza cambiare step.
    """
    _ensure_can_onboard(partner)
    sync_agreements_step(db, partner)
    step = partner.onboarding_step
    early = _STEP_ORDER[step] < _STEP_ORDER[OnboardingStep.AGREEMENTS_COMPLETE]

    if early and not allow_early:
        raise OnboardingStepSkipped(
            "Sign all required agreements before setting up payments.",
            current_step=step.value,
            requested_step=OnboardingStep.PAYMENT_PENDING.value,
            next_action=NEXT_ACTION[step],
        )

    events: list[DomainEvent] = []
    if step == OnboardingStep.AGREEMENTS_COMPLETE:
        events += advance(partner, OnboardingStep.PAYMENT_PENDING, signing_progress(db, partner.id))

    if payment_method:
        partner.payment_method = payment_method
    if payment_email:
        partner.payment_email = payment_email
    if stripe_account_id:
        partner.stripe_account_id = stripe_account_id

    was_confirmed = bool(partner.payment_confirmed)
    partner.payment_confirmed = bool(confirmed)
    if confirmed and not was_confirmed:
        partner.payment_confirmed_at = _now()
        events.append(DomainEvent(
            partner_id=partner.id,
            type=NotificationType.PAYMENT_SETUP_CONFIRMED,
            title="Payment details confirmed",
            message="Your payout details are set up. You can now activate your account.",
            data={"payment_method": partner.payment_method},
        ))
    elif not confirmed:
        partner.payment_confirmed_at = None

    _commit(db, partner, events)
    return partner


# ---------------------------------------------------------
# ACTIVATE
# ---------------------------------------------------------
def activate(db: Session, partner: Partner) -> Partner:
    if partner.status == PartnerStatus.ACTIVE and partner.onboarding_step == OnboardingStep.ACTIVE:
        return partner

    events = advance(partner, OnboardingStep.ACTIVE, signing_progress(db, partner.id))
    _commit(db, partner, events)
    return partner


# ---------------------------------------------------------
# STATUS (admin)
# ---------------------------------------------------------
_STATUS_EVENTS = {
    PartnerStatus.SUSPENDED: (
        NotificationType.ACCOUNT_SUSPENDED,
        "Account suspended",
        "Your partner account has been suspended. Please contact support for more information.",
    ),
    PartnerStatus.ACTIVE: (
        NotificationType.ACCOUNT_REINSTATED,
        "Account reinstated",
        "Your partner account is active again.",
    ),
    PartnerStatus.REJECTED: (
        NotificationType.APPLICATION_REJECTED,
        "Application not approved",
        "Your partner application was not approved.",
    ),
}


def set_partner_status(
    db: Session,
    partner: Partner,
    new_status: PartnerStatus,
    reason: Optional[str] = None,
) -> Partner:
    current = partner.status
    if new_status == current:
        return partner

    if new_status not in PARTNER_STATUS_TRANSITIONS[current]:
        raise InvalidInput(
            f"Cannot change partner status from {current.value} to {new_status.value}.",
            current_status=current.value,
            requested_status=new_status.value,
        )

    if new_status == PartnerStatus.ACTIVE and partner.onboarding_step != OnboardingStep.ACTIVE:
        raise OnboardingStepSkipped(
            "Partner has not completed onboarding.",
            current_step=partner.onboarding_step.value,
            requested_step=OnboardingStep.ACTIVE.value,
            next_action=NEXT_ACTION[partner.onboarding_step],
        )

    partner.status = new_status
    ntype, title, message = _STATUS_EVENTS[new_status]
    if reason:
        message = f"{message} Reason: {reason}"

    _commit(db, partner, [DomainEvent(
        partner_id=partner.id,
        type=ntype,
        title=title,
        message=message,
        data={"previous_status": current.value, "status": new_status.value},
    )])

    logger.info("Partner %s status: %s -> %s", partner.id, current.value, new_status.value)
    return partner


# ---------------------------------------------------------
# STATUS VIEW
# ---------------------------------------------------------
def onboarding_status(db: Session, partner: Partner) -> dict:
    progress = sync_agreements_step(db, partner)
    step = partner.onboarding_step

    next_action = NEXT_ACTION[step]
    if step == OnboardingStep.PAYMENT_PENDING and partner.payment_confirmed:
        next_action = "activate"

    return {
        "current_step": step.value,
        "status": partner.status.value,
        "next_action": next_action,
        "progress": progress.as_dict(),
        "steps": {
            "approval": {"completed": True},
            "agreements": {
                "completed": _STEP_ORDER[step] >= _STEP_ORDER[OnboardingStep.AGREEMENTS_COMPLETE],
            },
            "payment": {
                "completed": bool(partner.payment_confirmed),
                "completed_at": partner.payment_confirmed_at,
            },
            "activation": {
                "completed": step == OnboardingStep.ACTIVE,
                "completed_at": partner.activated_at,
            },
        },
    }
