"""
notifications.py — Transactional email for each pipeline stage

Sends through the Resend HTTP API using the shared httpx client.

Business Rules:
- Guest emails: acknowledgment, missing info, draft itinerary,
  proposal + payment link, payment confirmation
- Admin email: approval request with approve / reject links
- Sending never raises: unconfigured key or API error → False, logged
- Every interpolated value is HTML-escaped
- Replies go to the site's contact address

Called by: services/pipeline.py
Depends on: config.py, http_client.py, sites.py, services/validation.py
"""

import html

from loguru import logger

from ..config import settings
from ..http_client import http
from ..sites import Site
from .validation import missing_field_labels

RESEND_URL = "https://api.resend.com/emails"

_GUEST_WRAPPER = (
    '<div style="font-family: Georgia, serif; max-width: 600px; margin: 0 auto; padding: 40px 20px;">'
    '<h1 style="font-size: 24px; font-weight: normal; margin-bottom: 30px;">Dear {first_name},</h1>'
    "{body}"
    '<p style="line-height: 1.8; color: #333; margin-top: 40px;">Warm regards,<br>The {site_name} Team</p>'
    "</div>"
)
_P = '<p style="line-height: 1.8; color: #333;">{}</p>'
_BOX = '<div style="background: #f9f7f4; padding: 24px; margin: 30px 0;">{}</div>'
_BUTTON = (
    '<a href="{href}" style="background: #1a1a1a; color: #fff; padding: 16px 32px; '
    'text-decoration: none; display: inline-block; font-size: 14px; letter-spacing: 0.1em;">{label}</a>'
)


def _e(value) -> str:
    return html.escape(str(value or ""))


def _guest_html(site: Site, first_name: str, body: str) -> str:
    return _GUEST_WRAPPER.format(first_name=_e(first_name), site_name=_e(site.name), body=body)


class EmailNotifier:
    """One instance per process; stateless apart from config."""

    def __init__(self, api_key: str | None = None, sender: str | None = None,
                 admin_email: str | None = None):
        self.api_key = settings.resend_api_key if api_key is None else api_key
        self.sender = sender or settings.email_from
        self.admin_email = settings.admin_email if admin_email is None else admin_email

    async def send_email(self, site: Site, to: str, subject: str, body_html: str) -> bool:
        if not self.api_key:
            logger.error("Resend API key not configured, not sending '{}'", subject)
            return False
        if not to:
            logger.warning("No recipient for '{}' ({})", subject, site.id)
            return False
        try:
            resp = await http.post(
                RESEND_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": self.sender,
                    "to": [to],
                    "subject": subject,
                    "html": body_html,
                    "reply_to": site.contact_email,
                },
                timeout=15,
            )
        except Exception as e:
            logger.error("Email send error ({}): {}", subject, e)
            return False
        if resp.status_code >= 400:
            logger.error("Email send failed ({}): {} {}", subject, resp.status_code, resp.text[:200])
            return False
        logger.info("Email sent: '{}' to {} ({})", subject, to, site.id)
        return True

    # ── Guest emails ────────────────────────────────────────────────

    async def send_acknowledgment(self, site: Site, *, first_name: str, email: str,
                                  journey: str, month: str, year: str,
                                  travelers: str, days: str) -> bool:
        details = "".join(
            f'<p style="margin: 0 0 10px 0;"><strong>{label}:</strong> {value}</p>'
            for label, value in (
                ("Journey Interest", _e(journey)),
                ("Travel Dates", f"{_e(month)} {_e(year)}"),
                ("Travelers", _e(travelers)),
                ("Duration", f"{_e(days)} days"),
            )
        )
        body = (
            _P.format("Thank you for your interest in exploring with us. We've received "
                      "your journey request and are reviewing it now.")
            + _BOX.format(details)
            + _P.format("We'll be in touch within 24 hours with next steps.")
        )
        return await self.send_email(site, email, "We've received your journey request",
                                     _guest_html(site, first_name, body))

    async def send_missing_info(self, site: Site, *, first_name: str, email: str,
                                client_id: str, missing_fields: list[str]) -> bool:
        items = "".join(
            f'<li style="margin-bottom: 8px;">{_e(label)}</li>'
            for label in missing_field_labels(missing_fields)
        )
        body = (
            _P.format("Thank you for your journey request. To prepare a personalized "
                      "itinerary for you, we need a bit more information:")
            + f'<ul style="background: #f9f7f4; padding: 24px 24px 24px 40px; margin: 30px 0;">{items}</ul>'
            + _P.format("Simply reply to this email with these details, and we'll get "
                        f"started on your itinerary (reference {_e(client_id)}).")
        )
        return await self.send_email(site, email, "A few more details needed for your journey",
                                     _guest_html(site, first_name, body))

    async def send_draft_itinerary(self, site: Site, *, first_name: str, email: str,
                                   client_id: str, proposal_url: str) -> bool:
        body = (
            _P.format("We've prepared a draft itinerary based on your preferences. This is "
                      "just a starting point, and we're happy to adjust anything.")
            + '<div style="text-align: center; margin: 40px 0;">'
            + _BUTTON.format(href=_e(proposal_url), label="VIEW YOUR ITINERARY")
            + "</div>"
            + _P.format("Let us know what you think. You can request changes from the "
                        "itinerary page, or simply reply to this email.")
        )
        return await self.send_email(site, email, "Your draft itinerary is ready",
                                     _guest_html(site, first_name, body))

    async def send_proposal_with_payment(self, site: Site, *, first_name: str, email: str,
                                         client_id: str, proposal_url: str, payment_url: str,
                                         total_amount: str, currency: str) -> bool:
        body = (
            _P.format("Great news: your itinerary has been finalized and is ready to book.")
            + '<div style="background: #f9f7f4; padding: 24px; margin: 30px 0; text-align: center;">'
            + '<p style="margin: 0 0 8px 0; font-size: 14px; color: #666;">Total Amount</p>'
            + f'<p style="margin: 0; font-size: 28px; font-weight: bold;">{_e(currency)} {_e(total_amount)}</p>'
            + "</div>"
            + '<div style="text-align: center; margin: 40px 0;">'
            + f'<a href="{_e(proposal_url)}" style="color: #1a1a1a; text-decoration: underline; '
              f'display: block; margin-bottom: 16px;">View Your Itinerary</a>'
            + _BUTTON.format(href=_e(payment_url), label="SECURE YOUR JOURNEY")
            + "</div>"
            + _P.format("Once payment is received, we'll send you a confirmation with next steps.")
        )
        return await self.send_email(site, email, "Your journey is ready to book",
                                     _guest_html(site, first_name, body))

    async def send_payment_confirmation(self, site: Site, *, first_name: str, email: str,
                                        client_id: str, amount: str, currency: str) -> bool:
        body = (
            _P.format(f"Thank you! We've received your payment of {_e(currency)} {_e(amount)}.")
            + '<div style="background: #f0fdf4; border: 1px solid #22c55e; padding: 24px; '
              'margin: 30px 0; text-align: center;">'
            + '<p style="margin: 0; color: #166534; font-size: 18px;">&#10003; Your journey is confirmed</p>'
            + "</div>"
            + _P.format("We'll be in touch shortly with detailed information about your "
                        "upcoming adventure.")
        )
        return await self.send_email(site, email, "Payment received: your journey is confirmed",
                                     _guest_html(site, first_name, body))

    # ── Admin email ─────────────────────────────────────────────────

    async def send_approval_request(self, site: Site, *, client_id: str, client_name: str,
                                    proposal_summary: str, approve_url: str,
                                    reject_url: str, resend_url: str = "") -> bool:
        to = self.admin_email or site.contact_email
        link = (
            '<a href="{href}" style="background: {bg}; color: #fff; padding: 14px 28px; '
            'text-decoration: none; display: inline-block; font-size: 14px; '
            'font-weight: 500; margin-right: 16px;">{label}</a>'
        )
        body_html = (
            '<div style="font-family: -apple-system, BlinkMacSystemFont, \'Segoe UI\', Roboto, '
            'sans-serif; max-width: 600px; margin: 0 auto; padding: 40px 20px;">'
            '<h1 style="font-size: 20px; margin-bottom: 24px;">Proposal Ready for Approval</h1>'
            '<div style="background: #f5f5f5; padding: 20px; margin-bottom: 24px;">'
            f'<p style="margin: 0 0 8px 0;"><strong>Client:</strong> {_e(client_name)}</p>'
            f'<p style="margin: 0 0 8px 0;"><strong>ID:</strong> {_e(client_id)}</p>'
            f'<p style="margin: 0 0 8px 0;"><strong>Country:</strong> {_e(site.name)}</p>'
            "</div>"
            '<h3 style="font-size: 14px; margin-bottom: 12px;">Proposal Summary:</h3>'
            f'<p style="line-height: 1.6; color: #333;">{_e(proposal_summary)}</p>'
            + link.format(href=_e(approve_url), bg="#22c55e", label="APPROVE")
            + link.format(href=_e(reject_url), bg="#ef4444", label="REJECT")
            + '<p style="margin-top: 24px; font-size: 13px; color: #666;">Click Approve to send '
              "the proposal with payment link to the client.</p>"
            + (
                '<p style="margin-top: 8px; font-size: 13px; color: #666;">Already approved and the '
                f'client lost the email? <a href="{_e(resend_url)}">Resend the payment link</a>.</p>'
                if resend_url else ""
            )
            + "</div>"
        )
        return await self.send_email(site, to, f"[Approval Needed] {client_name} ({client_id})",
                                     body_html)
