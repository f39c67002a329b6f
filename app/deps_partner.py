# app/deps_partner.py
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.db import get_db
from app.errors import Forbidden, PartnerNotFound, Unauthorized
from app.security import decode_access_token
from models.partners import Partner, PartnerStatus

# Estrae il token dall'header Authorization: Bearer <token>
partner_bearer_scheme = HTTPBearer(auto_error=False)


def get_caller_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(partner_bearer_scheme),
) -> str:
    """
    Ritorna l'id utente (claim 'sub') del provider di identità.
    Token assente, scaduto o di un admin → 401.
    """
    if credentials is None:
        raise Unauthorized("Authentication required.")

    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise Unauthorized("Invalid or expired token.")

    # i token admin ('admin:<id>') non valgono sul portale partner
    if user_id.startswith("admin:"):
        raise Unauthorized("Token not valid for partner access.")

    return user_id


def get_current_partner(
    user_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> Partner:
    partner = db.query(Partner).filter(Partner.user_id == user_id).first()
    if not partner:
        raise PartnerNotFound("No partner account found for this user.")
    return partner


def require_active_partner(partner: Partner = Depends(get_current_partner)) -> Partner:
    """Dashboard, lead: solo partner con status active."""
    if partner.status != PartnerStatus.ACTIVE:
        raise Forbidden(
            f"Partner account is {partner.status.value}.",
            reason=f"partner_{partner.status.value}",
            can_access_dashboard=False,
            onboarding_step=partner.onboarding_step.value,
        )
    return partner


def require_onboarding_partner(partner: Partner = Depends(get_current_partner)) -> Partner:
    """Onboarding: partner pending o active, mai suspended/rejected."""
    if partner.status in (PartnerStatus.SUSPENDED, PartnerStatus.REJECTED):
        raise Forbidden(
            f"Partner account is {partner.status.value}.",
            reason=f"partner_{partner.status.value}",
            can_access_dashboard=False,
        )
    return partner
