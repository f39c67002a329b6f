# schemas/leads.py

from pydantic import BaseModel, EmailStr
from decimal import Decimal
from typing import List, Optional
from datetime import datetime

from models.leads import LeadStatus


class LeadCreate(BaseModel):
    client_name: str
    client_email: EmailStr
    client_phone: Optional[str] = None
    service: str
    # almeno uno dei due: commission esplicita o service_value (× rate partner)
    service_value: Optional[Decimal] = None
    commission: Optional[Decimal] = None


class LeadStatusUpdate(BaseModel):
    # stringa libera: la validazione (invalid_status) la fa la state machine
    status: str


class LeadOut(BaseModel):
    id: int
    partner_id: int
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    service: str
    service_value: Optional[Decimal] = None
    commission: Optional[Decimal] = None
    status: LeadStatus
    commission_paid: bool
    commission_paid_at: Optional[datetime] = None
    created_at: datetime
    converted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LeadListOut(BaseModel):
    items: List[LeadOut]
    total: int
