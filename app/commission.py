# app/commission.py
"""
Calcolo commissioni partner.

Funzioni pure, nessun accesso al DB. Gli importi sono Decimal a 2 decimali
(ROUND_HALF_UP); le somme si fanno in centesimi interi così che
pending + paid == total sempre, senza drift.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol, Optional

from models.leads import LeadStatus

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# -------------------------------------------------
# RANK → soglie referral (informativo)
# -------------------------------------------------
RANK_THRESHOLDS: list[tuple[int, str]] = [
    (31, "Platinum"),
    (16, "Gold"),
    (6, "Silver"),
    (0, "Bronze"),
]


class CommissionLike(Protocol):
    status: LeadStatus
    commission: Optional[Decimal]
    commission_paid: bool


@dataclass(frozen=True)
class CommissionTotals:
    total: Decimal
    pending: Decimal
    paid: Decimal


def money2(v: Decimal) -> Decimal:
    return v.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount) -> int:
    if amount is None:
        return 0
    d = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((d * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / Decimal(100)).quantize(CENT)


def compute_commission(service_value, commission_rate_pct) -> Decimal:
    value = Decimal(str(service_value or 0))
    rate = Decimal(str(commission_rate_pct or 0))
    if value <= 0:
        return ZERO
    return money2((value * rate) / Decimal("100"))


def aggregate(leads: Iterable[CommissionLike]) -> CommissionTotals:
    """
    total = tutte le commissioni (qualsiasi status)
    paid  = commissioni con commission_paid
    pending = total - paid
    """
    total_cents = 0
    paid_cents = 0
    for lead in leads:
        cents = to_cents(lead.commission)
        total_cents += cents
        if lead.commission_paid:
            paid_cents += cents

    return CommissionTotals(
        total=from_cents(total_cents),
        pending=from_cents(total_cents - paid_cents),
        paid=from_cents(paid_cents),
    )


def conversion_rate(leads: Iterable[CommissionLike]) -> float:
    total = 0
    converted = 0
    for lead in leads:
        total += 1
        if lead.status == LeadStatus.CONVERTED:
            converted += 1
    if total == 0:
        return 0.0
    return round(converted / total * 100, 2)


def average_commission(leads: Iterable[CommissionLike]) -> Decimal:
    cents = [to_cents(lead.commission) for lead in leads if lead.commission is not None]
    if not cents:
        return ZERO
    return money2(Decimal(sum(cents)) / Decimal(len(cents)) / Decimal(100))


def growth_percent(current, previous) -> float:
    current = Decimal(str(current or 0))
    previous = Decimal(str(previous or 0))
    if previous > 0:
        return float(money2((current - previous) / previous * Decimal("100")))
    return 100.0 if current > 0 else 0.0


def partner_rank(total_referrals: int) -> str:
    for threshold, label in RANK_THRESHOLDS:
        if total_referrals >= threshold:
            return label
    return "Bronze"
