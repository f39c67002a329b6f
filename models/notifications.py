from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, Index
import enum

from models import Base


class NotificationType(str, enum.Enum):
    LEAD_CREATED = "lead_created"
    LEAD_CONTACTED = "lead_contacted"
    LEAD_QUALIFIED = "lead_qualified"
    LEAD_CONVERTED = "lead_converted"
    LEAD_LOST = "lead_lost"
    LEAD_REOPENED = "lead_reopened"
    COMMISSION_PAID = "commission_paid"
    AGREEMENT_SIGNED = "agreement_signed"
    AGREEMENTS_COMPLETED = "agreements_completed"
    PAYMENT_SETUP_CONFIRMED = "payment_setup_confirmed"
    ACCOUNT_APPROVED = "account_approved"
    ACCOUNT_SUSPENDED = "account_suspended"
    ACCOUNT_REINSTATED = "account_reinstated"
    APPLICATION_REJECTED = "application_rejected"
    SYSTEM = "system"


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_partner_read", "partner_id", "read"),
    )

    id = Column(Integer, primary_key=True, index=True)

    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=False, index=True)

    # valore di NotificationType (stringa per non dover migrare l'enum DB)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(String(1000), nullable=False)
    data = Column(JSON, nullable=False, default=dict)

    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
