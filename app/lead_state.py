# app/lead_state.py
"""
State machine dei lead referral.

    pending -> contacted -> qualified -> converted
        \\          \\            \\
         +----------+------------+--> lost

converted e lost sono terminali. Tutte le modifiche di status passano da
apply_transition(): nessun altro punto del codice scrive lead.status.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from app.commission import compute_commission
from app.errors import InvalidStatus, InvalidTransition, TerminalStateViolation
from app.events import DomainEvent
from models.leads import Lead, LeadStatus
from models.notifications import NotificationType

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({LeadStatus.CONVERTED, LeadStatus.LOST})

_OPEN = (LeadStatus.PENDING, LeadStatus.CONTACTED, LeadStatus.QUALIFIED)

# Transizioni ammesse: da uno stato aperto verso qualsiasi altro stato,
# dagli stati terminali verso nessuno.
TRANSITIONS: dict[LeadStatus, frozenset[LeadStatus]] = {
    status: frozenset(s for s in LeadStatus if s != status) for status in _OPEN
}
TRANSITIONS[LeadStatus.CONVERTED] = frozenset()
TRANSITIONS[LeadStatus.LOST] = frozenset()

_PIPELINE_ORDER = {
    LeadStatus.PENDING: 0,
    LeadStatus.CONTACTED: 1,
    LeadStatus.QUALIFIED: 2,
    LeadStatus.CONVERTED: 3,
}

_EVENT_TYPES = {
    LeadStatus.CONTACTED: NotificationType.LEAD_CONTACTED,
    LeadStatus.QUALIFIED: NotificationType.LEAD_QUALIFIED,
    LeadStatus.CONVERTED: NotificationType.LEAD_CONVERTED,
    LeadStatus.LOST: NotificationType.LEAD_LOST,
}


def parse_status(value) -> LeadStatus:
    if isinstance(value, LeadStatus):
        return value
    try:
        return LeadStatus(str(value).strip().lower())
    except (ValueError, AttributeError):
        valid = ", ".join(s.value for s in LeadStatus)
        raise InvalidStatus(
            f"Status must be one of: {valid}",
            allowed=[s.value for s in LeadStatus],
        )


def is_terminal(status: LeadStatus) -> bool:
    return status in TERMINAL_STATUSES


def _event_type(previous: LeadStatus, new: LeadStatus) -> NotificationType:
    if new in _PIPELINE_ORDER and _PIPELINE_ORDER[new] < _PIPELINE_ORDER[previous]:
        return NotificationType.LEAD_REOPENED
    return _EVENT_TYPES[new]


def _describe(lead: Lead, new: LeadStatus, event_type: NotificationType) -> tuple[str, str]:
    name = lead.client_name
    if event_type == NotificationType.LEAD_CONVERTED:
        amount = lead.commission if lead.commission is not None else Decimal("0.00")
        return (
            "Lead converted",
            f"{name} became a client. Commission earned: ${amount:.2f}.",
        )
    if event_type == NotificationType.LEAD_LOST:
        return ("Lead lost", f"{name} has been marked as lost.")
    if event_type == NotificationType.LEAD_REOPENED:
        return ("Lead moved back", f"{name} has been moved back to {new.value}.")
    return (f"Lead {new.value}", f"{name} is now {new.value}.")


def apply_transition(
    lead: Lead,
    new_status,
    *,
    commission_rate: Optional[Decimal] = None,
    now: Optional[datetime] = None,
) -> Optional[DomainEvent]:
    """
    Applica la transizione a `lead` (in memoria) e ritorna l'evento da
    notificare, oppure None se lo status richiesto è già quello corrente.

    Solleva InvalidStatus, InvalidTransition o TerminalStateViolation
    senza toccare il lead.
    """
    target = parse_status(new_status)
    current = lead.status

    if is_terminal(current):
        raise TerminalStateViolation(
            f"Lead is already {current.value}; no further status changes are allowed.",
            current_status=current.value,
            requested_status=target.value,
        )

    if target == current:
        return None

    if target not in TRANSITIONS[current]:
        raise InvalidTransition(
            f"Transition {current.value} -> {target.value} is not allowed.",
            current_status=current.value,
            requested_status=target.value,
        )

    now = now or datetime.now(timezone.utc)

    if target == LeadStatus.CONVERTED:
        # idempotente: converted_at si scrive una sola volta
        if lead.converted_at is None:
            lead.converted_at = now
        if lead.commission is None:
            lead.commission = compute_commission(lead.service_value, commission_rate)

    lead.status = target

    event_type = _event_type(current, target)
    title, message = _describe(lead, target, event_type)

    logger.info(
        "Lead %s (partner %s): %s -> %s",
        lead.id,
        lead.partner_id,
        current.value,
        target.value,
    )

    return DomainEvent(
        partner_id=lead.partner_id,
        type=event_type,
        title=title,
        message=message,
        data={
            "lead_id": lead.id,
            "previous_status": current.value,
            "status": target.value,
            "commission": str(lead.commission) if lead.commission is not None else None,
        },
    )
