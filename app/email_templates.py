# app/email_templates.py
from __future__ import annotations

from html import escape
from typing import Iterable, Optional


def _money(v) -> str:
    try:
        return f"{float(v):.2f}"
    except (TypeError, ValueError):
        return str(v)


def _rows_html(rows: Iterable[tuple[str, str]]) -> str:
    return "".join(
        f"""
        <div style="display:flex;justify-content:space-between;font-size:14px;margin-bottom:6px;">
          <span style="color:#666;">{escape(label)}</span>
          <strong>{escape(value)}</strong>
        </div>"""
        for label, value in rows
    )


# =========================================================
# LAYOUT COMUNE EMAIL PARTNER
# =========================================================
def render_partner_email_html(
    *,
    heading: str,
    greeting_name: str,
    paragraphs: Iterable[str],
    rows: Iterable[tuple[str, str]] = (),
    cta_url: Optional[str] = None,
    cta_label: str = "Open partner portal",
) -> str:
    rows = list(rows)
    body_html = "".join(
        f'<p style="margin:0 0 12px 0;color:#444;font-size:14px;">{escape(p)}</p>'
        for p in paragraphs
    )

    box_html = ""
    if rows:
        box_html = f"""
      <div style="background:#f9fafc;border:1px solid #eceef3;border-radius:12px;padding:14px;margin:16px 0;">
        {_rows_html(rows)}
      </div>"""

    cta_html = ""
    if cta_url:
        cta_html = f"""
      <p style="margin:18px 0;">
        <a href="{escape(cta_url)}" style="background:#111;color:#fff;padding:10px 16px;border-radius:8px;text-decoration:none;font-size:14px;">
          {escape(cta_label)}
        </a>
      </p>"""

    return f"""\
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Partner Program</title>
</head>
<body style="margin:0;padding:0;background:#f6f7fb;font-family:Arial,Helvetica,sans-serif;color:#111;">
  <div style="max-width:640px;margin:0 auto;padding:24px;">
    <div style="background:#ffffff;border-radius:14px;padding:22px;border:1px solid #eceef3;">

      <div style="font-size:18px;font-weight:700;">Partner Program</div>

      <hr style="border:none;border-top:1px solid #eceef3;margin:16px 0;">

      <h1 style="font-size:18px;margin:0 0 8px 0;">{escape(heading)}</h1>

      <p style="margin:0 0 12px 0;font-size:14px;">Hello <b>{escape(greeting_name)}</b>,</p>
      {body_html}
      {box_html}
      {cta_html}

      <p style="margin:0;color:#666;font-size:12px;">
        Need help? Simply reply to this email.
      </p>
    </div>

    <p style="margin:14px 0 0 0;text-align:center;color:#888;font-size:11px;">
      Partner Program · Automated email
    </p>
  </div>
</body>
</html>
"""


def render_partner_email_text(
    *,
    greeting_name: str,
    paragraphs: Iterable[str],
    rows: Iterable[tuple[str, str]] = (),
    cta_url: Optional[str] = None,
) -> str:
    lines = [f"Hello {greeting_name},", ""]
    for p in paragraphs:
        lines += [p, ""]
    rows = list(rows)
    if rows:
        lines += [f"{label}: {value}" for label, value in rows]
        lines.append("")
    if cta_url:
        lines += [f"Partner portal: {cta_url}", ""]
    lines += ["Kind regards,", "Partner Program Team"]
    return "\n".join(lines)


def money_label(v) -> str:
    return f"${_money(v)}"
