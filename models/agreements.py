# models/agreements.py

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func
import enum

from models import Base


class AgreementType(str, enum.Enum):
    PARTNER_AGREEMENT = "partner_agreement"
    NDA = "nda"
    COMMISSION_STRUCTURE = "commission_structure"


class Agreement(Base):
    """
    Testo legale che il partner deve accettare durante l'onboarding.
    Una nuova versione = nuova riga (le firme restano legate alla vecchia).
    """
    __tablename__ = "partner_agreements"

    id = Column(Integer, primary_key=True, index=True)

    agreement_type = Column(Enum(AgreementType, name="agreement_type"), nullable=False)
    version = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    summary = Column(String(1000), nullable=True)

    is_required = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AgreementSignature(Base):
    """
    Firma (append-only) di un agreement da parte di un partner.
    signed_at non cambia mai dopo l'inserimento.
    """
    __tablename__ = "partner_agreement_signatures"
    __table_args__ = (
        UniqueConstraint("partner_id", "agreement_id", name="uq_agreement_signature_partner"),
    )

    id = Column(Integer, primary_key=True, index=True)

    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=False, index=True)
    agreement_id = Column(Integer, ForeignKey("partner_agreements.id"), nullable=False)

    signed_at = Column(DateTime(timezone=True), nullable=False)
    signature_text = Column(String(500), nullable=False)

    signed_by_user_id = Column(String(255), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    # versione e hash del testo firmato
    agreement_version = Column(String(20), nullable=False)
    content_hash = Column(String(64), nullable=False)
