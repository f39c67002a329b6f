# routers/admin_agreements.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from models.agreements import Agreement
from routers.auth_admin import get_current_admin
from schemas.agreements import AgreementCreate, AgreementOut, AgreementUpdate

router = APIRouter(prefix="/admin/agreements", tags=["Admin Agreements"])

logger = logging.getLogger(__name__)


@router.get("", response_model=List[AgreementOut])
def admin_list_agreements(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    q = db.query(Agreement)
    if not include_inactive:
        q = q.filter(Agreement.is_active.is_(True))
    return q.order_by(Agreement.sort_order.asc(), Agreement.id.asc()).all()


@router.post("", response_model=AgreementOut, status_code=status.HTTP_201_CREATED)
def admin_create_agreement(
    payload: AgreementCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    """
    Nuova versione di un testo = nuovo agreement.
    Le firme esistenti restano legate alla versione firmata.
    """
    agreement = Agreement(**payload.model_dump())
    db.add(agreement)
    db.commit()
    db.refresh(agreement)

    logger.info(
        "Admin %s: creato agreement %s (%s v%s)",
        admin.id,
        agreement.id,
        agreement.agreement_type.value,
        agreement.version,
    )
    return agreement


@router.patch("/{agreement_id}", response_model=AgreementOut)
def admin_update_agreement(
    agreement_id: int,
    payload: AgreementUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    agreement = db.query(Agreement).filter(Agreement.id == agreement_id).first()
    if not agreement:
        raise HTTPException(status_code=404, detail="Agreement non trovato.")

    updates = payload.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if value is None and field != "summary":
            raise HTTPException(status_code=400, detail=f"{field} cannot be null.")
        setattr(agreement, field, value)

    db.commit()
    db.refresh(agreement)
    return agreement
