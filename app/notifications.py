# app/notifications.py
"""
NotificationEmitter: trasforma gli eventi di dominio in notifiche persistite.

Le notifiche vengono aggiunte alla stessa sessione della transizione che le
ha generate, quindi vengono salvate (o scartate) insieme ad essa e
l'ordine per partner segue l'ordine di emissione (created_at, id).
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.errors import Forbidden, InvalidInput, NotFound
from app.events import DomainEvent
from models.notifications import Notification, NotificationType
from models.partners import Partner

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# consegnate anche con notifications_enabled=False
ACCOUNT_CRITICAL_TYPES = frozenset({
    NotificationType.ACCOUNT_APPROVED,
    NotificationType.ACCOUNT_SUSPENDED,
    NotificationType.ACCOUNT_REINSTATED,
    NotificationType.APPLICATION_REJECTED,
    NotificationType.COMMISSION_PAID,
})


class NotificationEmitter:
    def __init__(self, db: Session):
        self.db = db

    # ---------------------------------------------------------
    # EMIT
    # ---------------------------------------------------------
    def emit(
        self,
        partner_id: int,
        type: NotificationType | str,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> Notification:
        try:
            ntype = NotificationType(type)
        except ValueError:
            raise InvalidInput(f"Unknown notification type: {type}")

        notification = Notification(
            partner_id=partner_id,
            type=ntype.value,
            title=title,
            message=message,
            data=dict(data or {}),
            read=False,
            read_at=None,
            created_at=_now(),
        )
        self.db.add(notification)
        # flush: id assegnato subito, preserva l'ordine di emissione
        self.db.flush()

        logger.debug("Notifica %s (%s) per partner %s", notification.id, ntype.value, partner_id)
        return notification

    def publish(self, events: Iterable[Optional[DomainEvent]]) -> list[Notification]:
        """
        Eventi -> notifiche, in ordine. Se il partner ha disattivato le
        notifiche in-app passano solo i tipi in ACCOUNT_CRITICAL_TYPES.
        """
        created = []
        enabled: dict[int, bool] = {}
        for event in events:
            if event is None:
                continue
            if not self._in_app_enabled(event.partner_id, enabled) and (
                event.type not in ACCOUNT_CRITICAL_TYPES
            ):
                logger.debug("Notifica %s saltata: partner %s ha le notifiche disattivate", event.type, event.partner_id)
                continue
            created.append(
                self.emit(event.partner_id, event.type, event.title, event.message, event.data)
            )
        return created

    def _in_app_enabled(self, partner_id: int, cache: dict[int, bool]) -> bool:
        if partner_id not in cache:
            partner = self.db.get(Partner, partner_id)
            cache[partner_id] = partner is None or bool(partner.notifications_enabled)
        return cache[partner_id]

    # ---------------------------------------------------------
    # READ STATE
    # ---------------------------------------------------------
    def get_for_partner(self, notification_id: int, partner_id: int) -> Notification:
        notification = self.db.get(Notification, notification_id)
        if notification is None:
            raise NotFound("Notification not found.")
        if notification.partner_id != partner_id:
            raise Forbidden("This notification belongs to another account.", reason="not_owner")
        return notification

    def mark_read(self, notification: Notification) -> Notification:
        # idempotente: la seconda chiamata non cambia read_at
        if not notification.read:
            notification.read = True
            notification.read_at = _now()
        return notification

    def mark_all_read(self, partner_id: int) -> int:
        """
        Segna come lette le notifiche non lette presenti ALL'INIZIO
        dell'operazione: quelle create nel frattempo restano non lette.

        Un solo UPDATE: lo snapshot è quello dello statement, le notifiche
        committate dopo il suo avvio restano non lette.
        """
        updated = (
            self.db.query(Notification)
            .filter(
                Notification.partner_id == partner_id,
                Notification.read == False,  # noqa: E712
            )
            .update({"read": True, "read_at": _now()}, synchronize_session="evaluate")
        )
        return int(updated or 0)

    # ---------------------------------------------------------
    # LIST
    # ---------------------------------------------------------
    def list_for_partner(
        self,
        partner_id: int,
        *,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Notification]:
        q = self.db.query(Notification).filter(Notification.partner_id == partner_id)
        if unread_only:
            q = q.filter(Notification.read.is_(False))
        return (
            q.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count(self, partner_id: int) -> int:
        return (
            self.db.query(func.count(Notification.id))
            .filter(Notification.partner_id == partner_id)
            .scalar()
            or 0
        )

    def unread_count(self, partner_id: int) -> int:
        return (
            self.db.query(func.count(Notification.id))
            .filter(Notification.partner_id == partner_id, Notification.read.is_(False))
            .scalar()
            or 0
        )
