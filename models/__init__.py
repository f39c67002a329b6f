from sqlalchemy.orm import declarative_base

Base = declarative_base()

# --------------------------------------------------
# Partners & onboarding
# --------------------------------------------------
from .partners import Partner  # noqa: F401
from .partner_requests import PartnerRequest  # noqa: F401
from .agreements import Agreement, AgreementSignature  # noqa: F401

# --------------------------------------------------
# Referral leads
# --------------------------------------------------
from .leads import Lead  # noqa: F401

# --------------------------------------------------
# Notifications
# --------------------------------------------------
from .notifications import Notification  # noqa: F401

# --------------------------------------------------
# Admin
# --------------------------------------------------
from .admin import Admin  # noqa: F401
