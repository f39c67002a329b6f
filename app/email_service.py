# app/email_service.py
import logging
import os
import smtplib
from email.message import EmailMessage
from typing import Iterable, Optional

import requests

from app.email_templates import money_label, render_partner_email_html, render_partner_email_text
from app.events import DomainEvent
from models.notifications import NotificationType

logger = logging.getLogger(__name__)


def _get_env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name, default)
    if v in ("", None):
        return default
    return v


def _portal_url(path: str = "") -> Optional[str]:
    base = _get_env("PORTAL_URL")
    if not base:
        return None
    return base.rstrip("/") + path


def _send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
) -> None:
    """
    Invio email.
    Provider selezionabile via env:
    - EMAIL_PROVIDER=resend  (consigliato in produzione)
    - EMAIL_PROVIDER=smtp    (fallback)
    Se EMAIL_ENABLED != "1" non fa nulla (safe per dev e test).
    """
    enabled = _get_env("EMAIL_ENABLED", "0")
    if enabled != "1":
        return

    provider = (_get_env("EMAIL_PROVIDER", "smtp") or "smtp").lower().strip()

    # ------------------------
    # RESEND (HTTP API)
    # ------------------------
    if provider == "resend":
        api_key = _get_env("RESEND_API_KEY")
        from_email = _get_env("FROM_EMAIL") or _get_env("SMTP_FROM")
        reply_to = _get_env("REPLY_TO_EMAIL") or _get_env("SMTP_REPLY_TO")

        if not api_key or not from_email:
            raise RuntimeError("RESEND_API_KEY / FROM_EMAIL mancanti nelle variabili d'ambiente.")

        payload: dict = {
            "from": from_email,
            "to": [to_email],
            "subject": subject,
            "text": text_body,
        }
        if html_body:
            payload["html"] = html_body
        if reply_to:
            payload["reply_to"] = reply_to

        r = requests.post(
            "https://api.resend.com/emails",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=15,
        )

        if r.status_code >= 300:
            raise RuntimeError(f"Resend send failed: {r.status_code} {r.text}")

        return

    # ------------------------
    # SMTP (fallback)
    # ------------------------
    host = _get_env("SMTP_HOST")
    port = int(_get_env("SMTP_PORT", "587") or "587")
    user = _get_env("SMTP_USER")
    password = _get_env("SMTP_PASS")
    from_email = _get_env("SMTP_FROM", user)
    from_name = _get_env("SMTP_FROM_NAME", "")
    reply_to = _get_env("SMTP_REPLY_TO")
    use_tls = _get_env("SMTP_TLS", "1") == "1"

    if password:
        password = password.replace(" ", "").strip()

    if not host or not from_email:
        raise RuntimeError("SMTP_HOST/SMTP_FROM mancanti nelle variabili d'ambiente.")

    from_header = f"{from_name} <{from_email}>" if from_name else from_email

    msg = EmailMessage()
    msg["From"] = from_header
    msg["To"] = to_email
    msg["Subject"] = subject
    if reply_to:
        msg["Reply-To"] = reply_to

    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(host, port, timeout=20) as server:
        server.ehlo()
        if use_tls:
            server.starttls()
            server.ehlo()
        if user and password:
            server.login(user, password)
        server.send_message(msg)


def _send_partner_email(
    to_email: str,
    subject: str,
    *,
    heading: str,
    name: str,
    paragraphs: list[str],
    rows: Iterable[tuple[str, str]] = (),
    cta_path: Optional[str] = None,
) -> None:
    rows = list(rows)
    cta_url = _portal_url(cta_path) if cta_path is not None else None
    _send_email(
        to_email=to_email,
        subject=subject,
        text_body=render_partner_email_text(
            greeting_name=name, paragraphs=paragraphs, rows=rows, cta_url=cta_url
        ),
        html_body=render_partner_email_html(
            heading=heading, greeting_name=name, paragraphs=paragraphs, rows=rows, cta_url=cta_url
        ),
    )


# =================================================
# CANDIDATURA
# =================================================
def send_partner_request_approved_email(
    to_email: str,
    company_name: str,
    commission_rate: str,
) -> None:
    _send_partner_email(
        to_email,
        "Partner Program — Application approved ✅",
        heading="Your application has been approved",
        name=company_name,
        paragraphs=[
            "Welcome to the Partner Program!",
            "To start earning, sign the partner agreements and set up your payout details in the portal.",
        ],
        rows=[("Commission rate", f"{commission_rate}%")],
        cta_path="/onboarding",
    )


def send_partner_request_rejected_email(to_email: str, company_name: str) -> None:
    _send_partner_email(
        to_email,
        "Partner Program — Application update",
        heading="Application update",
        name=company_name,
        paragraphs=[
            "Thank you for your interest in the Partner Program.",
            "After review, we are unable to approve your application at this time.",
        ],
    )


# =================================================
# EVENTI DI DOMINIO → EMAIL
# =================================================
def _account_approved(partner, event: DomainEvent) -> None:
    _send_partner_email(
        partner.email,
        "Partner Program — Your account is active ✅",
        heading="Your partner account is active",
        name=partner.company_name,
        paragraphs=["Onboarding complete. You can now submit referrals and track your commissions."],
        cta_path="/dashboard",
    )


def _account_suspended(partner, event: DomainEvent) -> None:
    _send_partner_email(
        partner.email,
        "Partner Program — Account update",
        heading="Your account has been suspended",
        name=partner.company_name,
        paragraphs=[
            event.message,
            "If you believe this is a mistake, simply reply to this email.",
        ],
    )


def _lead_converted(partner, event: DomainEvent) -> None:
    _send_partner_email(
        partner.email,
        "Partner Program — Referral converted 🎉",
        heading="Your referral became a client",
        name=partner.company_name,
        paragraphs=[event.message],
        rows=[("Commission", money_label(event.data.get("commission") or "0"))],
        cta_path="/leads",
    )


def _commission_paid(partner, event: DomainEvent) -> None:
    _send_partner_email(
        partner.email,
        "Partner Program — Commission paid 💸",
        heading="Commission paid",
        name=partner.company_name,
        paragraphs=[event.message],
        rows=[("Amount", money_label(event.data.get("amount") or "0"))],
    )


EMAIL_SENDERS = {
    NotificationType.ACCOUNT_APPROVED: _account_approved,
    NotificationType.ACCOUNT_SUSPENDED: _account_suspended,
    NotificationType.LEAD_CONVERTED: _lead_converted,
    NotificationType.COMMISSION_PAID: _commission_paid,
}


def dispatch_event_emails(partner, events: Iterable[Optional[DomainEvent]]) -> None:
    """
    Da chiamare DOPO il commit. NON BLOCCANTE: un errore di invio viene
    solo loggato, la transizione resta valida.
    """
    if partner is None or not partner.email_notifications:
        return

    for event in events:
        if event is None:
            continue
        sender = EMAIL_SENDERS.get(event.type)
        if sender is None:
            continue
        try:
            sender(partner, event)
        except Exception as e:
            logger.warning(
                "Email %s fallita partner_id=%s (%s): %s",
                event.type.value,
                partner.id,
                partner.email,
                str(e),
            )
