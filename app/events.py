# app/events.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from models.notifications import NotificationType


@dataclass(frozen=True)
class DomainEvent:
    """Evento prodotto da uno state machine, consumato da NotificationEmitter.publish."""

    partner_id: int
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
