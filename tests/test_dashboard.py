from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from app.dashboard import build_stats, next_payout_date, resolve_timezone
from models.leads import LeadStatus

NOW = datetime(2026, 4, 15, 9, 0, tzinfo=timezone.utc)


def _lead(status, commission, created_at, converted_at=None, paid=False):
    return SimpleNamespace(
        status=status,
        commission=Decimal(commission),
        commission_paid=paid,
        created_at=created_at,
        converted_at=converted_at,
    )


def test_empty_input_gives_zero_stats():
    stats = build_stats([], now=NOW)

    assert stats["total_leads"] == 0
    assert stats["active_leads"] == 0
    assert stats["conversion_rate"] == 0.0
    assert stats["total_earnings"] == Decimal("0.00")
    assert stats["pending_earnings"] == Decimal("0.00")
    assert stats["this_month_earnings"] == Decimal("0.00")
    assert stats["earnings_growth"] == 0.0
    assert stats["average_commission"] == Decimal("0.00")
    assert stats["payout_schedule"] == "Monthly"
    assert stats["next_payout_date"] == date(2026, 5, 1)
    assert [m["month"] for m in stats["monthly_trend"]] == [
        "2025-11", "2025-12", "2026-01", "2026-02", "2026-03", "2026-04",
    ]


def test_counts_and_earnings_by_month():
    leads = [
        _lead(LeadStatus.CONVERTED, "500.00",
              datetime(2026, 4, 2, tzinfo=timezone.utc), datetime(2026, 4, 10, tzinfo=timezone.utc), paid=True),
        _lead(LeadStatus.CONVERTED, "200.00",
              datetime(2026, 3, 1, tzinfo=timezone.utc), datetime(2026, 3, 20, tzinfo=timezone.utc)),
        _lead(LeadStatus.PENDING, "50.00", datetime(2026, 4, 5, tzinfo=timezone.utc)),
        _lead(LeadStatus.QUALIFIED, "80.00", datetime(2026, 4, 6, tzinfo=timezone.utc)),
        _lead(LeadStatus.LOST, "30.00", datetime(2026, 3, 3, tzinfo=timezone.utc)),
    ]
    stats = build_stats(leads, now=NOW)

    assert stats["total_leads"] == 5
    assert stats["active_leads"] == 2
    assert stats["leads_by_status"]["converted"] == 2
    assert stats["conversion_rate"] == 40.0
    assert stats["total_earnings"] == Decimal("860.00")
    assert stats["paid_earnings"] == Decimal("500.00")
    assert stats["pending_earnings"] == Decimal("360.00")
    assert stats["this_month_earnings"] == Decimal("500.00")
    assert stats["last_month_earnings"] == Decimal("200.00")
    assert stats["earnings_growth"] == 150.0
    assert stats["this_month_leads"] == 3
    assert stats["last_month_leads"] == 2
    assert stats["leads_growth"] == 50.0
    assert stats["monthly_trend"][-1] == {
        "month": "2026-04", "leads": 3, "conversions": 1, "earnings": Decimal("500.00"),
    }


def test_months_are_bucketed_in_partner_timezone():
    # 23:30 UTC del 31 marzo = 1 aprile a Tokyo
    converted_at = datetime(2026, 3, 31, 23, 30, tzinfo=timezone.utc)
    leads = [_lead(LeadStatus.CONVERTED, "100.00", converted_at, converted_at)]

    utc_stats = build_stats(leads, now=NOW)
    assert utc_stats["this_month_earnings"] == Decimal("0.00")
    assert utc_stats["last_month_earnings"] == Decimal("100.00")

    tokyo_stats = build_stats(leads, now=NOW, tz_name="Asia/Tokyo")
    assert tokyo_stats["this_month_earnings"] == Decimal("100.00")
    assert tokyo_stats["timezone"] == "Asia/Tokyo"


def test_naive_datetimes_are_treated_as_utc():
    leads = [_lead(LeadStatus.CONVERTED, "10.00", datetime(2026, 4, 1), datetime(2026, 4, 1))]
    assert build_stats(leads, now=NOW)["this_month_earnings"] == Decimal("10.00")


def test_unknown_timezone_falls_back_to_utc():
    assert resolve_timezone("Mars/Olympus") is timezone.utc
    assert build_stats([], now=NOW, tz_name="Mars/Olympus")["timezone"] == "UTC"


def test_next_payout_date_rolls_over_year():
    assert next_payout_date(datetime(2026, 12, 10, tzinfo=timezone.utc)) == date(2027, 1, 1)


def test_build_stats_does_not_mutate_leads():
    lead = _lead(LeadStatus.PENDING, "10.00", datetime(2026, 4, 1, tzinfo=timezone.utc))
    before = dict(vars(lead))
    build_stats([lead], now=NOW)
    assert vars(lead) == before
