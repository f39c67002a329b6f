# schemas/partner_requests.py

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from decimal import Decimal
from datetime import datetime

from models.partner_requests import PartnerRequestStatus


# 🔓 INPUT (utente autenticato, non ancora partner)
class PartnerRequestCreate(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    contact_name: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


# 🔒 OUTPUT (allineato al DB)
class PartnerRequestOut(BaseModel):
    id: int
    user_id: str
    company_name: str
    email: EmailStr
    contact_name: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    status: PartnerRequestStatus
    partner_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PartnerRequestApprove(BaseModel):
    commission_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
