# models/admin.py

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from . import Base  # Importiamo Base dal package models


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)

    # Email di login dell'admin del back-office partner
    email = Column(String, unique=True, index=True, nullable=False)

    # Hash bcrypt della password
    hashed_password = Column(String, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    # superadmin: puo' cambiare commission_rate e stato dei partner
    is_superadmin = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
