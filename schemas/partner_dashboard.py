from pydantic import BaseModel, EmailStr
from decimal import Decimal
from datetime import date
from typing import Dict, List, Optional

from schemas.partners import PartnerOut


class MonthlyTrendItem(BaseModel):
    month: str
    leads: int
    conversions: int
    earnings: Decimal


class DashboardStats(BaseModel):
    total_leads: int
    leads_by_status: Dict[str, int]
    active_leads: int
    converted_leads: int
    lost_leads: int
    conversion_rate: float

    total_earnings: Decimal
    paid_earnings: Decimal
    pending_earnings: Decimal

    this_month_earnings: Decimal
    last_month_earnings: Decimal
    earnings_growth: float
    this_month_leads: int
    last_month_leads: int
    leads_growth: float

    average_commission: Decimal
    rank: str
    next_payout_date: date
    payout_schedule: str
    monthly_trend: List[MonthlyTrendItem]
    timezone: str


class DashboardOut(BaseModel):
    partner: PartnerOut
    stats: DashboardStats
    unread_notifications: int


class PaymentSetupIn(BaseModel):
    confirmed: bool
    payment_method: Optional[str] = None
    payment_email: Optional[EmailStr] = None
    # account Stripe Connect: la conferma arriva poi dal webhook
    stripe_account_id: Optional[str] = None
