# routers/notifications.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps_partner import get_current_partner
from app.notifications import NotificationEmitter
from models.partners import Partner
from routers.auth_admin import get_current_admin
from schemas.notifications import (
    MarkAllReadOut,
    NotificationCreate,
    NotificationListOut,
    NotificationOut,
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListOut)
def list_notifications(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db),
):
    emitter = NotificationEmitter(db)
    return {
        "items": emitter.list_for_partner(
            current_partner.id, unread_only=unread_only, limit=limit, offset=offset
        ),
        "total": emitter.count(current_partner.id),
        "unread_count": emitter.unread_count(current_partner.id),
    }


@router.patch("/{notification_id}", response_model=NotificationOut)
def mark_notification_read(
    notification_id: int,
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db),
):
    emitter = NotificationEmitter(db)
    notification = emitter.get_for_partner(notification_id, current_partner.id)
    emitter.mark_read(notification)
    db.commit()
    db.refresh(notification)
    return notification


@router.post("/mark-all-read", response_model=MarkAllReadOut)
def mark_all_notifications_read(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db),
):
    updated = NotificationEmitter(db).mark_all_read(current_partner.id)
    db.commit()
    return {"updated": updated}


# ---------------------------------------------------------
# Notifica manuale (solo admin)
# ---------------------------------------------------------
@router.post("", response_model=NotificationOut, status_code=201)
def create_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    if db.get(Partner, payload.partner_id) is None:
        raise HTTPException(status_code=404, detail="Partner non trovato.")

    notification = NotificationEmitter(db).emit(
        payload.partner_id,
        payload.type,
        payload.title,
        payload.message,
        payload.data,
    )
    db.commit()
    db.refresh(notification)
    return notification
