# routers/partner_requests.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps_partner import get_caller_id
from models.partner_requests import PartnerRequest, PartnerRequestStatus
from models.partners import Partner
from schemas.partner_requests import PartnerRequestCreate, PartnerRequestOut

router = APIRouter(prefix="/partner-requests", tags=["Partner Requests"])

logger = logging.getLogger(__name__)


def _clean(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


# ---------------------------------------------------------
# POST /partner-requests → candidatura dell'utente autenticato
# ---------------------------------------------------------
@router.post("", response_model=PartnerRequestOut, status_code=201)
def create_partner_request(
    payload: PartnerRequestCreate,
    user_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
):
    company_name = payload.company_name.strip()
    if not company_name:
        raise HTTPException(status_code=400, detail="Missing field: company_name")

    if db.query(Partner).filter(Partner.user_id == user_id).first():
        raise HTTPException(status_code=409, detail="This user already has a partner account.")

    # Anti-duplicati applicativo (una sola candidatura pending per utente)
    existing = (
        db.query(PartnerRequest)
        .filter(
            PartnerRequest.user_id == user_id,
            PartnerRequest.status == PartnerRequestStatus.PENDING,
        )
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="An application for this user is already pending.")

    req = PartnerRequest(
        user_id=user_id,
        company_name=company_name,
        email=str(payload.email).lower().strip(),
        contact_name=_clean(payload.contact_name),
        website=_clean(payload.website),
        notes=_clean(payload.notes),
        status=PartnerRequestStatus.PENDING,
    )
    db.add(req)
    db.commit()
    db.refresh(req)

    logger.info("Nuova candidatura partner request_id=%s user_id=%s", req.id, user_id)
    return req


# ---------------------------------------------------------
# GET /partner-requests/me → stato della propria candidatura
# ---------------------------------------------------------
@router.get("/me", response_model=list[PartnerRequestOut])
def my_partner_requests(
    user_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
):
    return (
        db.query(PartnerRequest)
        .filter(PartnerRequest.user_id == user_id)
        .order_by(PartnerRequest.id.desc())
        .all()
    )
