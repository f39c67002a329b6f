# app/lead_service.py
"""
Operazioni sui lead che toccano il DB: creazione, transizioni di status
(sempre via app.lead_state), pagamento commissione, totali per partner.
Ogni operazione è una transazione: modifica + notifiche + commit.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.commission import aggregate, compute_commission, money2, partner_rank
from app.db import conflict_guard, load_for_update
from app.email_service import dispatch_event_emails
from app.errors import Forbidden, InvalidInput, NotFound
from app.events import DomainEvent
from app.lead_state import apply_transition, parse_status
from app.notifications import NotificationEmitter
from models.leads import Lead, LeadStatus
from models.notifications import NotificationType
from models.partners import Partner

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------
# LOOKUP
# ---------------------------------------------------------
def get_lead(db: Session, lead_id: int, *, for_update: bool = False) -> Lead:
    lead = load_for_update(db, Lead, lead_id) if for_update else db.get(Lead, lead_id)
    if lead is None:
        raise NotFound("Lead not found.")
    return lead


def get_partner_lead(db: Session, partner: Partner, lead_id: int, *, for_update: bool = False) -> Lead:
    lead = get_lead(db, lead_id, for_update=for_update)
    if lead.partner_id != partner.id:
        raise Forbidden("This lead belongs to another partner.", reason="not_owner")
    return lead


def list_leads(
    db: Session,
    *,
    partner_id: Optional[int] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Lead], int]:
    q = db.query(Lead)
    if partner_id is not None:
        q = q.filter(Lead.partner_id == partner_id)
    if status:
        q = q.filter(Lead.status == parse_status(status))

    total = q.count()
    leads = (
        q.order_by(Lead.created_at.desc(), Lead.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return leads, total


# ---------------------------------------------------------
# CREATE
# ---------------------------------------------------------
def create_lead(
    db: Session,
    partner: Partner,
    *,
    client_name: str,
    client_email: str,
    service: str,
    client_phone: Optional[str] = None,
    commission: Optional[Decimal] = None,
    service_value: Optional[Decimal] = None,
) -> Lead:
    client_name = (client_name or "").strip()
    service = (service or "").strip()
    if not client_name:
        raise InvalidInput("Missing field: client_name")
    if not service:
        raise InvalidInput("Missing field: service")

    # commissione esplicita oppure derivata da service_value * rate del partner
    if commission is not None:
        if commission < 0:
            raise InvalidInput("commission must not be negative.")
        fixed_commission = money2(Decimal(str(commission)))
    elif service_value is not None:
        fixed_commission = compute_commission(service_value, partner.commission_rate)
    else:
        raise InvalidInput("Either commission or service_value is required.")

    lead = Lead(
        partner_id=partner.id,
        client_name=client_name,
        client_email=str(client_email).strip().lower(),
        client_phone=(client_phone or "").strip() or None,
        service=service,
        service_value=service_value,
        commission=fixed_commission,
        status=LeadStatus.PENDING,
        commission_paid=False,
        created_at=_now(),
    )
    db.add(lead)
    db.flush()

    NotificationEmitter(db).publish([
        DomainEvent(
            partner_id=partner.id,
            type=NotificationType.LEAD_CREATED,
            title="New lead submitted",
            message=f"{client_name} was added to your referrals ({service}).",
            data={"lead_id": lead.id, "status": lead.status.value, "commission": str(fixed_commission)},
        )
    ])

    db.commit()
    db.refresh(lead)

    logger.info("Lead %s creato per partner %s (commissione %s)", lead.id, partner.id, fixed_commission)
    return lead


# ---------------------------------------------------------
# TRANSITION
# ---------------------------------------------------------
def transition_lead(db: Session, lead: Lead, new_status) -> Lead:
    """
    Unico punto che cambia lead.status su DB.
    Il lock/versione del lead garantisce che due transizioni concorrenti
    non vadano entrambe a buon fine: la perdente riceve
    ConcurrentModification (o TerminalStateViolation se legge già lo
    stato terminale).
    """
    partner = db.get(Partner, lead.partner_id)
    rate = partner.commission_rate if partner is not None else None

    event = apply_transition(lead, new_status, commission_rate=rate, now=_now())
    if event is None:
        return lead

    with conflict_guard(db, f"Lead {lead.id}"):
        NotificationEmitter(db).publish([event])
        db.commit()
    db.refresh(lead)
    dispatch_event_emails(partner, [event])
    return lead


# ---------------------------------------------------------
# COMMISSION PAID (admin)
# ---------------------------------------------------------
def mark_commission_paid(db: Session, lead: Lead) -> Lead:
    if lead.commission_paid:
        return lead

    if lead.commission is None:
        raise InvalidInput("This lead has no commission to pay yet.")

    lead.commission_paid = True
    lead.commission_paid_at = _now()

    event = DomainEvent(
        partner_id=lead.partner_id,
        type=NotificationType.COMMISSION_PAID,
        title="Commission paid",
        message=f"Your commission of ${lead.commission:.2f} for {lead.client_name} has been paid.",
        data={"lead_id": lead.id, "amount": str(lead.commission)},
    )

    with conflict_guard(db, f"Lead {lead.id}"):
        NotificationEmitter(db).publish([event])
        db.commit()
    db.refresh(lead)

    logger.info("Commissione lead %s pagata (%s)", lead.id, lead.commission)
    dispatch_event_emails(db.get(Partner, lead.partner_id), [event])
    return lead


# ---------------------------------------------------------
# TOTALI DERIVATI (mai salvati sul partner)
# ---------------------------------------------------------
def partner_totals(db: Session, partner_id: int) -> dict:
    leads = (
        db.query(Lead.status, Lead.commission, Lead.commission_paid)
        .filter(Lead.partner_id == partner_id)
        .all()
    )
    totals = aggregate(leads)
    total_referrals = len(leads)

    return {
        "total_referrals": total_referrals,
        "total_earnings": totals.total,
        "paid_earnings": totals.paid,
        "pending_earnings": totals.pending,
        "rank": partner_rank(total_referrals),
    }


def count_leads_by_status(db: Session, partner_id: int) -> dict[str, int]:
    rows = (
        db.query(Lead.status, func.count(Lead.id))
        .filter(Lead.partner_id == partner_id)
        .group_by(Lead.status)
        .all()
    )
    counts = {s.value: 0 for s in LeadStatus}
    for status, n in rows:
        counts[status.value] = int(n)
    return counts
