# routers/auth_admin.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.db import get_db
from models.admin import Admin
from schemas.admin import AdminLogin, AdminLoginOut, AdminOut
from app.security import create_access_token, decode_access_token

# ✅ bcrypt verify (no passlib)
from app.passwords import verify_password

router = APIRouter(prefix="/admin", tags=["Admin Auth"])

logger = logging.getLogger(__name__)

# Schema di sicurezza HTTP Bearer per gli admin
admin_bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------
# POST /admin/login → login admin
# ------------------------------
@router.post("/login", response_model=AdminLoginOut)
def admin_login(payload: AdminLogin, db: Session = Depends(get_db)):
    admin = (
        db.query(Admin)
        .filter(
            Admin.email == str(payload.email).lower(),
            Admin.is_active == True,  # noqa: E712
        )
        .first()
    )

    # stesso messaggio per email e password errate
    if not admin or not verify_password(payload.password, admin.hashed_password):
        logger.info("Login admin fallito per %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenziali admin non valide.",
        )

    # Token JWT con sub speciale: "admin:<id>"
    access_token = create_access_token({"sub": f"admin:{admin.id}"})

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "admin": AdminOut.model_validate(admin),
    }


# -------------------------------------------------
# Dependency: controlla che il token sia di un admin
# -------------------------------------------------
def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(admin_bearer_scheme),
    db: Session = Depends(get_db),
) -> Admin:
    """
    Legge il token JWT dall'header Authorization: Bearer <token>,
    verifica che il 'sub' inizi con 'admin:' e restituisce l'oggetto Admin.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token admin mancante.",
        )

    subject = decode_access_token(credentials.credentials)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token admin non valido.",
        )

    if not subject.startswith("admin:"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Accesso negato: token non admin.",
        )

    raw_id = subject.split(":", 1)[1]
    if not raw_id.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token admin corrotto.",
        )

    admin = (
        db.query(Admin)
        .filter(Admin.id == int(raw_id), Admin.is_active == True)  # noqa: E712
        .first()
    )
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin non trovato.",
        )

    return admin


def get_current_superadmin(admin: Admin = Depends(get_current_admin)) -> Admin:
    if not admin.is_superadmin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Operazione riservata ai superadmin.",
        )
    return admin
