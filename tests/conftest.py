import os
from decimal import Decimal

# prima di importare app.*: settings letti all'import
os.environ["DATABASE_URL"] = "sqlite:///./.pytest_bootstrap.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["EMAIL_ENABLED"] = "0"
os.environ["DB_AUTO_CREATE"] = "0"

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.config import settings
from app.db import get_db
from app.main import app
from app.passwords import hash_password
from models import Base
from models.admin import Admin
from models.agreements import Agreement, AgreementType
from models.partners import OnboardingStep, Partner, PartnerStatus


def auth_headers(user_id: str) -> dict[str, str]:
    token = jwt.encode({"sub": user_id}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'portal.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_partner(db):
    counter = {"n": 0}

    def _make(**overrides) -> Partner:
        counter["n"] += 1
        n = counter["n"]
        values = dict(
            user_id=f"user-{n}",
            company_name=f"Partner {n} Ltd",
            email=f"partner{n}@example.com",
            status=PartnerStatus.ACTIVE,
            onboarding_step=OnboardingStep.ACTIVE,
            commission_rate=Decimal("10.00"),
            payment_confirmed=False,
            timezone="UTC",
            notifications_enabled=True,
            email_notifications=True,
        )
        values.update(overrides)
        partner = Partner(**values)
        db.add(partner)
        db.commit()
        db.refresh(partner)
        return partner

    return _make


@pytest.fixture
def make_agreement(db):
    def _make(**overrides) -> Agreement:
        values = dict(
            agreement_type=AgreementType.PARTNER_AGREEMENT,
            version="1.0",
            title="Partner Agreement",
            content="The partner agrees to refer clients in good faith.",
            is_required=True,
            is_active=True,
            sort_order=0,
        )
        values.update(overrides)
        agreement = Agreement(**values)
        db.add(agreement)
        db.commit()
        db.refresh(agreement)
        return agreement

    return _make


@pytest.fixture
def make_admin(db):
    def _make(email: str = "admin@example.com", password: str = "s3cret-pass", superadmin: bool = False) -> Admin:
        admin = Admin(
            email=email,
            hashed_password=hash_password(password),
            is_active=True,
            is_superadmin=superadmin,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin

    return _make


@pytest.fixture
def admin_headers(make_admin):
    admin = make_admin()
    return auth_headers(f"admin:{admin.id}")


@pytest.fixture
def superadmin_headers(make_admin):
    admin = make_admin(email="root@example.com", superadmin=True)
    return auth_headers(f"admin:{admin.id}")
