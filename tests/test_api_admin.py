from decimal import Decimal

from models.leads import LeadStatus
from models.partners import OnboardingStep, PartnerStatus
from tests.conftest import auth_headers


def test_admin_login(client, make_admin):
    make_admin(email="ops@example.com", password="correct-horse")

    r = client.post("/admin/login", json={"email": "ops@example.com", "password": "wrong"})
    assert r.status_code == 401

    r = client.post("/admin/login", json={"email": "OPS@example.com", "password": "correct-horse"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["admin"]["email"] == "ops@example.com"

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    assert client.get("/admin/partners", headers=headers).status_code == 200


def test_admin_routes_reject_partner_tokens(client, make_partner):
    partner = make_partner()
    assert client.get("/admin/partners").status_code == 401
    assert client.get("/admin/partners", headers=auth_headers(partner.user_id)).status_code == 403


def test_commission_rate_is_superadmin_only(client, make_partner, admin_headers, superadmin_headers):
    partner = make_partner()
    headers = auth_headers(partner.user_id)
    old = client.post(
        "/partner/leads",
        json={"client_name": "Old", "client_email": "old@example.com", "service": "SEO", "service_value": "1000"},
        headers=headers,
    ).json()

    r = client.patch(f"/admin/partners/{partner.id}/commission-rate", json={"commission_rate": "15"}, headers=admin_headers)
    assert r.status_code == 403

    r = client.patch(f"/admin/partners/{partner.id}/commission-rate", json={"commission_rate": "150"}, headers=superadmin_headers)
    assert r.status_code == 400

    r = client.patch(f"/admin/partners/{partner.id}/commission-rate", json={"commission_rate": "15"}, headers=superadmin_headers)
    assert r.status_code == 200
    assert Decimal(r.json()["commission_rate"]) == Decimal("15.00")

    new = client.post(
        "/partner/leads",
        json={"client_name": "New", "client_email": "new@example.com", "service": "SEO", "service_value": "1000"},
        headers=headers,
    ).json()
    assert Decimal(new["commission"]) == Decimal("150.00")

    r = client.get(f"/partner/leads/{old['id']}", headers=headers)
    assert Decimal(r.json()["commission"]) == Decimal("100.00")


def test_suspend_and_reinstate(client, make_partner, admin_headers):
    partner = make_partner()
    headers = auth_headers(partner.user_id)
    assert client.get("/partner/dashboard", headers=headers).status_code == 200

    r = client.patch(
        f"/admin/partners/{partner.id}/status",
        json={"status": "suspended", "reason": "Chargebacks"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["status"] == "suspended"

    r = client.get("/partner/dashboard", headers=headers)
    assert r.status_code == 403
    assert r.json()["reason"] == "partner_suspended"

    # il profilo resta leggibile
    assert client.get("/partner/me", headers=headers).status_code == 200

    r = client.patch(f"/admin/partners/{partner.id}/status", json={"status": "active"}, headers=admin_headers)
    assert r.json()["status"] == "active"
    assert client.get("/partner/dashboard", headers=headers).status_code == 200

    types = [n["type"] for n in client.get("/notifications", headers=headers).json()["items"]]
    assert types[:2] == ["account_reinstated", "account_suspended"]


def test_pending_partner_cannot_be_suspended(client, make_partner, admin_headers):
    partner = make_partner(status=PartnerStatus.PENDING, onboarding_step=OnboardingStep.AGREEMENTS_PENDING)

    r = client.patch(f"/admin/partners/{partner.id}/status", json={"status": "suspended"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_input"

    r = client.patch(f"/admin/partners/{partner.id}/status", json={"status": "rejected"}, headers=admin_headers)
    assert r.json()["status"] == "rejected"


def test_partner_detail_and_filtered_list(client, make_partner, admin_headers):
    active = make_partner()
    make_partner(status=PartnerStatus.PENDING, onboarding_step=OnboardingStep.AGREEMENTS_PENDING)

    r = client.get("/admin/partners?status=pending", headers=admin_headers)
    assert [p["status"] for p in r.json()] == ["pending"]

    r = client.get(f"/admin/partners/{active.id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["partner"]["total_referrals"] == 0
    assert r.json()["onboarding"]["current_step"] == "active"

    assert client.get("/admin/partners/9999", headers=admin_headers).status_code == 404


def test_admin_lead_flow(client, make_partner, admin_headers):
    partner = make_partner()
    lead = client.post(
        "/partner/leads",
        json={"client_name": "Acme", "client_email": "a@example.com", "service": "SEO", "service_value": "2000"},
        headers=auth_headers(partner.user_id),
    ).json()

    r = client.patch(f"/admin/leads/{lead['id']}", json={"status": "converted"}, headers=admin_headers)
    assert r.json()["status"] == LeadStatus.CONVERTED.value

    r = client.post(f"/admin/leads/{lead['id']}/commission-paid", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["commission_paid"] is True

    r = client.get(f"/admin/leads?partner_id={partner.id}&status=converted", headers=admin_headers)
    assert r.json()["total"] == 1


def test_reject_application(client, admin_headers):
    applicant = auth_headers("auth0|bob")
    request_id = client.post(
        "/partner-requests",
        json={"company_name": "Bob Media", "email": "bob@example.com"},
        headers=applicant,
    ).json()["id"]

    r = client.post(f"/admin/partner-requests/{request_id}/reject", headers=admin_headers)
    assert r.json()["status"] == "REJECTED"

    # una richiesta già gestita non si può riprocessare
    r = client.post(f"/admin/partner-requests/{request_id}/approve", headers=admin_headers)
    assert r.status_code == 400

    assert client.get("/partner/me", headers=applicant).status_code == 404


def test_approve_uses_default_commission_rate(client, admin_headers):
    applicant = auth_headers("auth0|carol")
    request_id = client.post(
        "/partner-requests",
        json={"company_name": "Carol Studio", "email": "carol@example.com"},
        headers=applicant,
    ).json()["id"]

    r = client.post(f"/admin/partner-requests/{request_id}/approve", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["partner_id"] is not None

    me = client.get("/partner/me", headers=applicant).json()
    assert Decimal(me["commission_rate"]) == Decimal("10.00")
    assert me["status"] == "pending"
    # nessun agreement configurato: lo step firme è già completo
    assert me["onboarding_step"] == "agreements_complete"
    types = [n["type"] for n in client.get("/notifications", headers=applicant).json()["items"]]
    assert types == ["agreements_completed"]

    r = client.post("/partner/onboarding/payment", json={"confirmed": True, "payment_method": "paypal"}, headers=applicant)
    assert r.json()["next_action"] == "activate"
    assert client.post("/partner/onboarding/activate", headers=applicant).json()["status"] == "active"


def test_agreement_admin_crud(client, admin_headers):
    r = client.post(
        "/admin/agreements",
        json={"agreement_type": "nda", "version": "1.0", "title": "NDA", "content": "Keep it secret."},
        headers=admin_headers,
    )
    assert r.status_code == 201
    agreement_id = r.json()["id"]

    r = client.patch(f"/admin/agreements/{agreement_id}", json={"is_active": False, "summary": None}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    assert client.get("/admin/agreements", headers=admin_headers).json() == []
    listed = client.get("/admin/agreements?include_inactive=true", headers=admin_headers).json()
    assert [a["id"] for a in listed] == [agreement_id]

    r = client.patch(f"/admin/agreements/{agreement_id}", json={"title": None}, headers=admin_headers)
    assert r.status_code == 400
    assert client.patch("/admin/agreements/9999", json={"title": "x"}, headers=admin_headers).status_code == 404

    r = client.post(
        "/admin/agreements",
        json={"agreement_type": "mystery", "version": "1.0", "title": "?", "content": "?"},
        headers=admin_headers,
    )
    assert r.status_code == 400


def test_admin_notification_for_unknown_partner(client, admin_headers):
    r = client.post(
        "/notifications",
        json={"partner_id": 9999, "title": "Hi", "message": "Hello"},
        headers=admin_headers,
    )
    assert r.status_code == 404
