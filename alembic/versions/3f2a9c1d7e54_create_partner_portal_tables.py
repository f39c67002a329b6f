"""create partner portal tables

Revision ID: 3f2a9c1d7e54
Revises:
Create Date: 2026-10-19 10:12:31.402118
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7e54"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# SQLAlchemy salva nel DB il NOME dell'enum Python (es. 'PENDING')
partner_status = sa.Enum("PENDING", "ACTIVE", "SUSPENDED", "REJECTED", name="partner_status")
onboarding_step = sa.Enum(
    "APPLIED",
    "AGREEMENTS_PENDING",
    "AGREEMENTS_COMPLETE",
    "PAYMENT_PENDING",
    "ACTIVE",
    name="onboarding_step",
)
partner_request_status = sa.Enum("PENDING", "APPROVED", "REJECTED", name="partner_request_status")
lead_status = sa.Enum("PENDING", "CONTACTED", "QUALIFIED", "CONVERTED", "LOST", name="lead_status")
agreement_type = sa.Enum("PARTNER_AGREEMENT", "NDA", "COMMISSION_STRUCTURE", name="agreement_type")


def upgrade() -> None:
    # --- admins ---
    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_superadmin", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_admins_id", "admins", ["id"])
    op.create_index("ix_admins_email", "admins", ["email"], unique=True)

    # --- partners ---
    op.create_table(
        "partners",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(50), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("status", partner_status, nullable=False),
        sa.Column("onboarding_step", onboarding_step, nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("payment_email", sa.String(255), nullable=True),
        sa.Column("payment_confirmed", sa.Boolean(), nullable=False),
        sa.Column("payment_confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("stripe_account_id", sa.String(255), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False),
        sa.Column("email_notifications", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.UniqueConstraint("stripe_account_id"),
    )
    op.create_index("ix_partners_id", "partners", ["id"])
    op.create_index("ix_partners_user_id", "partners", ["user_id"], unique=True)
    op.create_index("ix_partners_status", "partners", ["status"])

    # --- partner_requests ---
    op.create_table(
        "partner_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("notes", sa.String(1000), nullable=True),
        sa.Column("status", partner_request_status, nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("partner_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_partner_requests_user_id", "partner_requests", ["user_id"])
    op.create_index("ix_partner_requests_email", "partner_requests", ["email"])
    op.create_index("ix_partner_requests_status", "partner_requests", ["status"])

    # --- partner_leads ---
    op.create_table(
        "partner_leads",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("partner_id", sa.Integer(), sa.ForeignKey("partners.id"), nullable=False),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_email", sa.String(255), nullable=False),
        sa.Column("client_phone", sa.String(50), nullable=True),
        sa.Column("service", sa.String(255), nullable=False),
        sa.Column("service_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("commission", sa.Numeric(10, 2), nullable=True),
        sa.Column("status", lead_status, nullable=False),
        sa.Column("commission_paid", sa.Boolean(), nullable=False),
        sa.Column("commission_paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("converted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("version_id", sa.Integer(), nullable=False),
    )
    op.create_index("ix_partner_leads_id", "partner_leads", ["id"])
    op.create_index("ix_partner_leads_partner_id", "partner_leads", ["partner_id"])
    op.create_index("ix_partner_leads_status", "partner_leads", ["status"])

    # --- partner_agreements ---
    op.create_table(
        "partner_agreements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("agreement_type", agreement_type, nullable=False),
        sa.Column("version", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("summary", sa.String(1000), nullable=True),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_partner_agreements_id", "partner_agreements", ["id"])

    # --- partner_agreement_signatures (append-only) ---
    op.create_table(
        "partner_agreement_signatures",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("partner_id", sa.Integer(), sa.ForeignKey("partners.id"), nullable=False),
        sa.Column("agreement_id", sa.Integer(), sa.ForeignKey("partner_agreements.id"), nullable=False),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("signature_text", sa.String(500), nullable=False),
        sa.Column("signed_by_user_id", sa.String(255), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("agreement_version", sa.String(20), nullable=False),
        sa.Column("content_hash", sa.String(64), nullable=False),
        sa.UniqueConstraint("partner_id", "agreement_id", name="uq_agreement_signature_partner"),
    )
    op.create_index("ix_partner_agreement_signatures_id", "partner_agreement_signatures", ["id"])
    op.create_index(
        "ix_partner_agreement_signatures_partner_id",
        "partner_agreement_signatures",
        ["partner_id"],
    )

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("partner_id", sa.Integer(), sa.ForeignKey("partners.id"), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.String(1000), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    op.create_index("ix_notifications_partner_id", "notifications", ["partner_id"])
    op.create_index("ix_notifications_partner_read", "notifications", ["partner_id", "read"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("partner_agreement_signatures")
    op.drop_table("partner_agreements")
    op.drop_table("partner_leads")
    op.drop_table("partner_requests")
    op.drop_table("partners")
    op.drop_table("admins")

    bind = op.get_bind()
    for enum in (agreement_type, lead_status, partner_request_status, onboarding_step, partner_status):
        enum.drop(bind, checkfirst=True)
