# schemas/partners.py

from pydantic import BaseModel, EmailStr, Field, field_validator
from decimal import Decimal
from typing import Optional
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from models.partners import OnboardingStep, PartnerStatus


class PartnerOut(BaseModel):
    id: int
    user_id: str
    company_name: str
    email: EmailStr
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None

    status: PartnerStatus
    onboarding_step: OnboardingStep
    commission_rate: Decimal

    payment_method: Optional[str] = None
    payment_email: Optional[str] = None
    payment_confirmed: bool

    timezone: str
    notifications_enabled: bool
    email_notifications: bool

    created_at: datetime | None = None
    activated_at: datetime | None = None

    class Config:
        from_attributes = True


# totali derivati dai lead, mai salvati
class PartnerMeOut(PartnerOut):
    total_referrals: int = 0
    total_earnings: Decimal = Decimal("0.00")
    paid_earnings: Decimal = Decimal("0.00")
    pending_earnings: Decimal = Decimal("0.00")
    rank: str = "Bronze"


class PartnerProfileUpdate(BaseModel):
    """Aggiornamento parziale: solo i campi presenti nel body vengono scritti."""

    company_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    website: Optional[str] = Field(default=None, max_length=500)
    payment_email: Optional[EmailStr] = None
    timezone: Optional[str] = None
    notifications_enabled: Optional[bool] = None
    email_notifications: Optional[bool] = None

    @field_validator("timezone")
    @classmethod
    def _valid_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v


class PartnerStatusUpdate(BaseModel):
    status: PartnerStatus
    reason: Optional[str] = None


class CommissionRateUpdate(BaseModel):
    commission_rate: Decimal = Field(ge=0, le=100)
