from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, Boolean
from sqlalchemy.sql import func
import enum

from models import Base


class PartnerStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    REJECTED = "rejected"


class OnboardingStep(str, enum.Enum):
    APPLIED = "applied"
    AGREEMENTS_PENDING = "agreements_pending"
    AGREEMENTS_COMPLETE = "agreements_complete"
    PAYMENT_PENDING = "payment_pending"
    ACTIVE = "active"


class Partner(Base):
    __tablename__ = "partners"

    id = Column(Integer, primary_key=True, index=True)

    # id dell'utente sul provider di identita' esterno (claim "sub" del token)
    user_id = Column(String(255), nullable=False, unique=True, index=True)

    company_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)

    contact_name = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    website = Column(String(500), nullable=True)

    status = Column(
        Enum(PartnerStatus, name="partner_status"),
        nullable=False,
        default=PartnerStatus.PENDING,
        index=True,
    )
    onboarding_step = Column(
        Enum(OnboardingStep, name="onboarding_step"),
        nullable=False,
        default=OnboardingStep.APPLIED,
    )

    # Percentuale di commissione (0-100), cambia solo da admin
    commission_rate = Column(Numeric(5, 2), nullable=False)

    # Setup pagamento: il meccanismo e' esterno, qui teniamo solo l'esito
    payment_method = Column(String(50), nullable=True)
    payment_email = Column(String(255), nullable=True)
    payment_confirmed = Column(Boolean, nullable=False, default=False)
    payment_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    stripe_account_id = Column(String(255), nullable=True, unique=True)

    # Fuso orario per le statistiche mensili della dashboard
    timezone = Column(String(64), nullable=False, default="UTC")

    notifications_enabled = Column(Boolean, nullable=False, default=True)
    email_notifications = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    activated_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Optimistic lock (vedi app/onboarding.py)
    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}
