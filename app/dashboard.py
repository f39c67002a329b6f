# app/dashboard.py
"""
Statistiche dashboard partner. Solo lettura, nessuna modifica ai lead.
I mesi si calcolano nel fuso orario del partner (default UTC).
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.commission import (
    ZERO,
    aggregate,
    average_commission,
    conversion_rate,
    from_cents,
    growth_percent,
    partner_rank,
    to_cents,
)
from models.leads import Lead, LeadStatus

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (LeadStatus.PENDING, LeadStatus.CONTACTED, LeadStatus.QUALIFIED)
PAYOUT_SCHEDULE = "Monthly"
TREND_MONTHS = 6


def resolve_timezone(name: Optional[str]):
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Timezone non valida '%s', uso UTC", name)
        return timezone.utc


def _local(dt: Optional[datetime], tz) -> Optional[datetime]:
    if dt is None:
        return None
    # SQLite restituisce datetime naive: sono salvati in UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def _month_key(dt: datetime) -> tuple[int, int]:
    return dt.year, dt.month


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def next_payout_date(now_local: datetime) -> date:
    year, month = _shift_month(now_local.year, now_local.month, 1)
    return date(year, month, 1)


def build_stats(
    leads: Iterable[Lead],
    *,
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> dict:
    leads = list(leads)
    tz = resolve_timezone(tz_name)
    now_local = _local(now or datetime.now(timezone.utc), tz)

    this_month = _month_key(now_local)
    last_month = _shift_month(*this_month, -1)

    counts = {s.value: 0 for s in LeadStatus}
    earnings_cents: dict[tuple[int, int], int] = {}
    leads_per_month: dict[tuple[int, int], int] = {}
    conversions_per_month: dict[tuple[int, int], int] = {}

    for lead in leads:
        counts[lead.status.value] += 1

        created = _local(lead.created_at, tz)
        if created is not None:
            key = _month_key(created)
            leads_per_month[key] = leads_per_month.get(key, 0) + 1

        if lead.status == LeadStatus.CONVERTED:
            converted = _local(lead.converted_at, tz)
            if converted is not None:
                key = _month_key(converted)
                earnings_cents[key] = earnings_cents.get(key, 0) + to_cents(lead.commission)
                conversions_per_month[key] = conversions_per_month.get(key, 0) + 1

    totals = aggregate(leads)

    this_earnings = from_cents(earnings_cents.get(this_month, 0))
    last_earnings = from_cents(earnings_cents.get(last_month, 0))
    this_leads = leads_per_month.get(this_month, 0)
    last_leads = leads_per_month.get(last_month, 0)

    trend = []
    for back in range(TREND_MONTHS - 1, -1, -1):
        key = _shift_month(*this_month, -back)
        trend.append({
            "month": f"{key[0]:04d}-{key[1]:02d}",
            "leads": leads_per_month.get(key, 0),
            "conversions": conversions_per_month.get(key, 0),
            "earnings": from_cents(earnings_cents.get(key, 0)),
        })

    return {
        "total_leads": len(leads),
        "leads_by_status": counts,
        "active_leads": sum(counts[s.value] for s in ACTIVE_STATUSES),
        "converted_leads": counts[LeadStatus.CONVERTED.value],
        "lost_leads": counts[LeadStatus.LOST.value],
        "conversion_rate": conversion_rate(leads),
        "total_earnings": totals.total,
        "paid_earnings": totals.paid,
        "pending_earnings": totals.pending,
        "this_month_earnings": this_earnings,
        "last_month_earnings": last_earnings,
        "earnings_growth": growth_percent(this_earnings, last_earnings),
        "this_month_leads": this_leads,
        "last_month_leads": last_leads,
        "leads_growth": growth_percent(this_leads, last_leads),
        "average_commission": average_commission(leads) if leads else ZERO,
        "rank": partner_rank(len(leads)),
        "next_payout_date": next_payout_date(now_local),
        "payout_schedule": PAYOUT_SCHEDULE,
        "monthly_trend": trend,
        "timezone": getattr(tz, "key", "UTC"),
    }

