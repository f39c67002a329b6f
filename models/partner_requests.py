# models/partner_requests.py

from sqlalchemy import Column, Integer, String, DateTime, Enum, text
from sqlalchemy.sql import func
import enum

from models import Base


class PartnerRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PartnerRequest(Base):
    __tablename__ = "partner_requests"

    # PK: niente index=True (già indicizzato)
    id = Column(Integer, primary_key=True)

    # utente autenticato che ha inviato la candidatura
    user_id = Column(String(255), nullable=False, index=True)

    company_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    contact_name = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)

    notes = Column(String(1000), nullable=True)

    # Index su status: utile per dashboard admin
    status = Column(
        Enum(PartnerRequestStatus, name="partner_request_status"),
        nullable=False,
        server_default=text("'PENDING'"),
        index=True,
    )

    # partner creato all'approvazione
    partner_id = Column(Integer, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
