from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Boolean,
    Enum,
    ForeignKey,
)
from sqlalchemy.sql import func
import enum

from models import Base


class LeadStatus(str, enum.Enum):
    PENDING = "pending"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    LOST = "lost"


class Lead(Base):
    __tablename__ = "partner_leads"

    id = Column(Integer, primary_key=True, index=True)

    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=False, index=True)

    # Snapshot del contatto: non si modifica dopo la creazione
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    client_phone = Column(String(50), nullable=True)

    service = Column(String(255), nullable=False)

    # Valore del servizio (opzionale) da cui deriva la commissione
    service_value = Column(Numeric(12, 2), nullable=True)

    # Commissione fissata alla creazione (non ricalcolata se cambia il rate)
    commission = Column(Numeric(10, 2), nullable=True)

    status = Column(
        Enum(LeadStatus, name="lead_status"),
        nullable=False,
        default=LeadStatus.PENDING,
        index=True,
    )

    # Indipendente dallo status
    commission_paid = Column(Boolean, nullable=False, default=False)
    commission_paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    converted_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}
