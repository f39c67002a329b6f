from decimal import Decimal

import pytest

from models.leads import LeadStatus
from models.partners import OnboardingStep, PartnerStatus
from tests.conftest import auth_headers

JANE = "auth0|jane"


def _create_agreements(client, admin_headers):
    ids = []
    for i, (kind, title) in enumerate([("partner_agreement", "Partner Agreement"), ("nda", "NDA")]):
        r = client.post(
            "/admin/agreements",
            json={
                "agreement_type": kind,
                "version": "2.1",
                "title": title,
                "content": f"{title} full text.",
                "sort_order": i,
            },
            headers=admin_headers,
        )
        assert r.status_code == 201, r.text
        ids.append(r.json()["id"])
    return ids


def test_requests_without_token_are_unauthorized(client):
    assert client.get("/partner/me").status_code == 401
    assert client.get("/partner/dashboard").status_code == 401
    r = client.get("/partner/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["error"] == "unauthorized"


def test_admin_token_is_not_a_partner_token(client, admin_headers):
    assert client.get("/partner/me", headers=admin_headers).status_code == 401


def test_website_referral_end_to_end(client, admin_headers):
    jane = auth_headers(JANE)
    agreement_ids = _create_agreements(client, admin_headers)

    # 1) candidatura
    r = client.post(
        "/partner-requests",
        json={"company_name": "Jane Digital", "email": "Jane@Example.org", "website": "https://jane.test"},
        headers=jane,
    )
    assert r.status_code == 201, r.text
    request_id = r.json()["id"]
    assert r.json()["email"] == "jane@example.org"

    r = client.get("/partner/dashboard", headers=jane)
    assert r.status_code == 404
    assert r.json()["error"] == "partner_not_found"

    # 2) approvazione admin
    r = client.post(
        f"/admin/partner-requests/{request_id}/approve",
        json={"commission_rate": "10"},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "APPROVED"

    r = client.get("/partner/dashboard", headers=jane)
    assert r.status_code == 403
    body = r.json()
    assert body["reason"] == "partner_pending"
    assert body["can_access_dashboard"] is False

    r = client.get("/partner/onboarding-status", headers=jane)
    assert r.json()["current_step"] == "agreements_pending"
    assert r.json()["next_action"] == "sign_agreements"

    # 3) agreement
    r = client.get("/partner/agreements", headers=jane)
    assert r.json()["progress"] == {"total": 2, "signed": 0, "remaining": 2, "all_signed": False}

    r = client.post(f"/partner/agreements/{agreement_ids[0]}/accept", json={"signature_text": ""}, headers=jane)
    assert r.status_code == 400
    assert r.json()["error"] == "acknowledgment_required"

    r = client.post(f"/partner/agreements/{agreement_ids[0]}/accept", json={"signature_text": "Jane Doe"}, headers=jane)
    assert r.status_code == 200
    assert r.json()["onboarding_step"] == "agreements_pending"

    r = client.post("/partner/onboarding/activate", headers=jane)
    assert r.status_code == 409
    assert r.json()["error"] == "onboarding_step_skipped"

    r = client.post(f"/partner/agreements/{agreement_ids[1]}/accept", json={"signature_text": "Jane Doe"}, headers=jane)
    assert r.json()["onboarding_step"] == "agreements_complete"
    assert r.json()["progress"]["all_signed"] is True

    # 4) pagamento + attivazione
    r = client.post("/partner/onboarding/payment", json={"confirmed": True, "payment_method": "paypal"}, headers=jane)
    assert r.status_code == 200, r.text
    assert r.json()["current_step"] == "payment_pending"
    assert r.json()["next_action"] == "activate"

    r = client.post("/partner/onboarding/activate", headers=jane)
    assert r.status_code == 200
    assert r.json()["status"] == "active"
    assert r.json()["onboarding_step"] == "active"

    # 5) lead Website, 5000 al 10%
    r = client.post(
        "/partner/leads",
        json={
            "client_name": "Acme Corp",
            "client_email": "ops@acme.example.com",
            "service": "Website",
            "service_value": "5000",
        },
        headers=jane,
    )
    assert r.status_code == 201, r.text
    lead = r.json()
    assert Decimal(lead["commission"]) == Decimal("500.00")
    assert lead["status"] == "pending"

    r = client.patch(f"/partner/leads/{lead['id']}", json={"status": "converted"}, headers=jane)
    assert r.status_code == 200
    assert r.json()["status"] == "converted"
    assert r.json()["converted_at"] is not None

    # 6) dashboard
    r = client.get("/partner/dashboard", headers=jane)
    assert r.status_code == 200, r.text
    stats = r.json()["stats"]
    assert Decimal(stats["total_earnings"]) == Decimal("500.00")
    assert Decimal(stats["pending_earnings"]) == Decimal("500.00")
    assert Decimal(stats["this_month_earnings"]) == Decimal("500.00")
    assert stats["conversion_rate"] == 100.0
    assert stats["converted_leads"] == 1
    assert stats["payout_schedule"] == "Monthly"

    r = client.get("/partner/me", headers=jane)
    assert r.json()["total_referrals"] == 1
    assert r.json()["rank"] == "Bronze"

    # 7) notifiche
    r = client.get("/notifications", headers=jane)
    types = [n["type"] for n in r.json()["items"]]
    assert types[0] == "lead_converted"
    assert "account_approved" in types
    assert "agreements_completed" in types
    assert r.json()["unread_count"] == r.json()["total"]

    r = client.post("/notifications/mark-all-read", headers=jane)
    assert r.json()["updated"] == len(types)
    r = client.post("/notifications/mark-all-read", headers=jane)
    assert r.json()["updated"] == 0


def test_duplicate_pending_application_is_rejected(client):
    jane = auth_headers(JANE)
    payload = {"company_name": "Jane Digital", "email": "jane@example.org"}
    assert client.post("/partner-requests", json=payload, headers=jane).status_code == 201
    assert client.post("/partner-requests", json=payload, headers=jane).status_code == 409

    r = client.get("/partner-requests/me", headers=jane)
    assert len(r.json()) == 1
    assert r.json()[0]["status"] == "PENDING"


def test_application_requires_valid_email(client):
    r = client.post(
        "/partner-requests",
        json={"company_name": "Jane Digital", "email": "nope"},
        headers=auth_headers(JANE),
    )
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_input"


@pytest.mark.parametrize(
    "status,reason",
    [(PartnerStatus.SUSPENDED, "partner_suspended"), (PartnerStatus.REJECTED, "partner_rejected")],
)
def test_dashboard_forbidden_reason(client, make_partner, status, reason):
    partner = make_partner(status=status)
    r = client.get("/partner/dashboard", headers=auth_headers(partner.user_id))
    assert r.status_code == 403
    assert r.json()["reason"] == reason
    assert r.json()["can_access_dashboard"] is False


def test_pending_partner_cannot_submit_leads(client, make_partner):
    partner = make_partner(status=PartnerStatus.PENDING, onboarding_step=OnboardingStep.AGREEMENTS_PENDING)
    r = client.post(
        "/partner/leads",
        json={"client_name": "A", "client_email": "a@example.com", "service": "SEO", "service_value": "10"},
        headers=auth_headers(partner.user_id),
    )
    assert r.status_code == 403


def _submit_lead(client, headers, **overrides):
    payload = {"client_name": "Acme", "client_email": "a@acme.example.com", "service": "SEO", "service_value": "1000"}
    payload.update(overrides)
    r = client.post("/partner/leads", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_lead_status_errors(client, make_partner):
    partner = make_partner()
    headers = auth_headers(partner.user_id)
    lead = _submit_lead(client, headers)

    r = client.patch(f"/partner/leads/{lead['id']}", json={"status": "archived"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_status"

    r = client.patch(f"/partner/leads/{lead['id']}", json={"status": "lost"}, headers=headers)
    assert r.json()["status"] == LeadStatus.LOST.value

    r = client.patch(f"/partner/leads/{lead['id']}", json={"status": "converted"}, headers=headers)
    assert r.status_code == 409
    assert r.json()["error"] == "terminal_state_violation"
    assert r.json()["current_status"] == "lost"


def test_other_partner_lead_is_forbidden(client, make_partner):
    owner = make_partner()
    other = make_partner()
    lead = _submit_lead(client, auth_headers(owner.user_id))

    r = client.get(f"/partner/leads/{lead['id']}", headers=auth_headers(other.user_id))
    assert r.status_code == 403
    r = client.patch(f"/partner/leads/{lead['id']}", json={"status": "contacted"}, headers=auth_headers(other.user_id))
    assert r.status_code == 403

    assert client.get("/partner/leads/9999", headers=auth_headers(owner.user_id)).status_code == 404


def test_list_leads_with_filter(client, make_partner):
    partner = make_partner()
    headers = auth_headers(partner.user_id)
    first = _submit_lead(client, headers)
    _submit_lead(client, headers, client_name="Beta")
    client.patch(f"/partner/leads/{first['id']}", json={"status": "contacted"}, headers=headers)

    r = client.get("/partner/leads", headers=headers)
    assert r.json()["total"] == 2
    r = client.get("/partner/leads?status=contacted", headers=headers)
    assert r.json()["total"] == 1
    assert r.json()["items"][0]["id"] == first["id"]
    assert client.get("/partner/leads?status=weird", headers=headers).status_code == 400


def test_profile_partial_update(client, make_partner):
    partner = make_partner(contact_phone="+39 055 000")
    headers = auth_headers(partner.user_id)

    r = client.patch("/partner/profile", json={"timezone": "Europe/Rome"}, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["timezone"] == "Europe/Rome"
    assert body["contact_phone"] == "+39 055 000"
    assert body["company_name"] == partner.company_name

    r = client.patch("/partner/profile", json={"contact_phone": None}, headers=headers)
    assert r.json()["contact_phone"] is None

    r = client.patch("/partner/profile", json={"timezone": "Nowhere/Land"}, headers=headers)
    assert r.status_code == 400
    r = client.patch("/partner/profile", json={"company_name": None}, headers=headers)
    assert r.status_code == 400
    r = client.patch("/partner/profile", json={"commission_rate": "99"}, headers=headers)
    assert r.status_code == 200
    assert Decimal(r.json()["commission_rate"]) == Decimal("10.00")


def test_notification_read_flow(client, make_partner, admin_headers):
    partner = make_partner()
    other = make_partner()

    r = client.post(
        "/notifications",
        json={"partner_id": partner.id, "title": "Welcome", "message": "Hello there"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    notification_id = r.json()["id"]

    # solo admin può emettere
    r = client.post(
        "/notifications",
        json={"partner_id": partner.id, "title": "x", "message": "y"},
        headers=auth_headers(partner.user_id),
    )
    assert r.status_code == 403

    r = client.patch(f"/notifications/{notification_id}", headers=auth_headers(other.user_id))
    assert r.status_code == 403

    r = client.patch(f"/notifications/{notification_id}", headers=auth_headers(partner.user_id))
    assert r.json()["read"] is True
    read_at = r.json()["read_at"]
    r = client.patch(f"/notifications/{notification_id}", headers=auth_headers(partner.user_id))
    assert r.json()["read_at"] == read_at

    r = client.get("/notifications?unread_only=true", headers=auth_headers(partner.user_id))
    assert r.json()["items"] == []


def test_payment_start_moves_to_payment_pending(client, make_partner):
    partner = make_partner(status=PartnerStatus.PENDING, onboarding_step=OnboardingStep.AGREEMENTS_COMPLETE)
    headers = auth_headers(partner.user_id)

    r = client.post("/partner/onboarding/payment/start", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["current_step"] == "payment_pending"
    assert r.json()["next_action"] == "confirm_payment"

    r = client.post("/partner/onboarding/activate", headers=headers)
    assert r.status_code == 409
    assert r.json()["next_action"] == "confirm_payment"


def test_dropped_requirement_unblocks_onboarding(client, make_partner, admin_headers):
    partner = make_partner(status=PartnerStatus.PENDING, onboarding_step=OnboardingStep.AGREEMENTS_PENDING)
    headers = auth_headers(partner.user_id)
    first, second = _create_agreements(client, admin_headers)

    client.post(f"/partner/agreements/{first}/accept", json={"signature_text": "Jane Doe"}, headers=headers)
    r = client.get("/partner/onboarding-status", headers=headers)
    assert r.json()["next_action"] == "sign_agreements"

    r = client.patch(f"/admin/agreements/{second}", json={"is_required": False}, headers=admin_headers)
    assert r.status_code == 200

    r = client.get("/partner/onboarding-status", headers=headers)
    assert r.json()["current_step"] == "agreements_complete"
    assert r.json()["next_action"] == "payment_setup"

    r = client.post("/partner/onboarding/payment/start", headers=headers)
    assert r.json()["current_step"] == "payment_pending"


def test_disabled_notifications_hide_lead_updates(client, make_partner):
    partner = make_partner()
    headers = auth_headers(partner.user_id)

    r = client.patch("/partner/profile", json={"notifications_enabled": False}, headers=headers)
    assert r.json()["notifications_enabled"] is False

    _submit_lead(client, headers)
    r = client.get("/notifications", headers=headers)
    assert r.json()["total"] == 0
