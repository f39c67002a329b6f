# schemas/agreements.py

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from models.agreements import AgreementType


class AgreementOut(BaseModel):
    id: int
    agreement_type: AgreementType
    version: str
    title: str
    content: str
    summary: Optional[str] = None
    is_required: bool
    is_active: bool
    sort_order: int

    class Config:
        from_attributes = True


class AgreementWithStatus(AgreementOut):
    signed: bool = False
    signed_at: Optional[datetime] = None


class AgreementCreate(BaseModel):
    agreement_type: AgreementType
    version: str = Field(min_length=1, max_length=20)
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    summary: Optional[str] = None
    is_required: bool = True
    is_active: bool = True
    sort_order: int = 0


# il testo non si modifica: nuova versione = nuovo agreement
class AgreementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    summary: Optional[str] = None
    is_required: Optional[bool] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class AgreementAccept(BaseModel):
    signature_text: Optional[str] = None


class SignatureOut(BaseModel):
    id: int
    agreement_id: int
    signed_at: datetime
    signature_text: str
    agreement_version: str
    content_hash: str

    class Config:
        from_attributes = True


class ProgressOut(BaseModel):
    total: int
    signed: int
    remaining: int
    all_signed: bool


class AgreementListOut(BaseModel):
    agreements: List[AgreementWithStatus]
    progress: ProgressOut


class AgreementAcceptOut(BaseModel):
    signature: SignatureOut
    progress: ProgressOut
    onboarding_step: str
