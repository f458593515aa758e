"""
pipeline.py — Status pipeline driven by external triggers

Handles the webhook side of the quote lifecycle:
- Form submission → new Quote (NEW) + acknowledgment (+ missing-info) email
- Draft itinerary ready → Quote ITINERARY_READY + itinerary email
- Approval requested → Proposal PENDING_APPROVAL + admin email with links
- Approval link clicked → APPROVED / REJECTED (+ payment email on approve)
- Payment notification → Quote + Proposal PAID + confirmation email

Business Rules:
- Handlers are stateless; every step re-reads the sheet
- Webhook payloads that carry only a Client ID are routed by its prefix
- Approval tokens are signed and expire; a bad token mutates nothing
- Approving a proposal that is already APPROVED, SENT or PAID changes nothing
  and sends nothing; resending the payment email is the explicit "resend" action
- A PAID proposal cannot be rejected
- A payment is only confirmed to the guest once the Quote row says PAID
- Only payment status "COMPLETED" is accepted; anything else is a soft failure
- Every write stamps Last_Updated (UTC ISO-8601)

Called by: routers/webhooks.py, routers/quotes.py, routers/proposals.py
Depends on: record_store, client_ids, validation, notifications, approval_tokens
"""

from dataclasses import dataclass

from loguru import logger

from ..config import settings
from ..errors import NotFoundError, StoreWriteError
from ..sites import Site, SiteRegistry
from ..statuses import (
    PROPOSAL_APPROVED,
    PROPOSAL_PAID,
    PROPOSAL_PENDING_APPROVAL,
    PROPOSAL_REJECTED,
    PROPOSAL_SENT,
    PROPOSALS,
    QUOTE_COLUMNS,
    QUOTE_ITINERARY_READY,
    QUOTE_NEW,
    QUOTE_PAID,
    QUOTE_PROPOSAL_APPROVED,
    QUOTE_PROPOSAL_REJECTED,
    QUOTES,
)
from ..utils import safe_int, utc_now_iso
from .approval_tokens import approval_links, verify_approval_token
from .client_ids import ClientIdIssuer
from .notifications import EmailNotifier
from .record_store import RecordStore
from .validation import (
    infer_cities,
    infer_hospitality_level,
    infer_journey_type,
    start_date_from_month,
    validate_quote,
)

APPROVAL_ACTIONS = ("approve", "reject", "resend")

# Approving a proposal in any of these states changes nothing
APPROVED_STATUSES = (PROPOSAL_APPROVED, PROPOSAL_SENT, PROPOSAL_PAID)


@dataclass
class ApprovalOutcome:
    """Result of an approval-link click, rendered as an HTML page."""
    status_code: int
    title: str
    message: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def payment_link(site: Site, amount: str) -> str:
    return f"https://www.paypal.com/paypalme/{settings.paypal_me_handle}/{amount or '0'}{site.currency}"


class StatusPipeline:
    def __init__(self, store: RecordStore, registry: SiteRegistry,
                 notifier: EmailNotifier, issuer: ClientIdIssuer | None = None):
        self.store = store
        self.registry = registry
        self.notifier = notifier
        self.issuer = issuer or ClientIdIssuer(store)

    # ── Inbound form submission ─────────────────────────────────────

    def _quote_values(self, client_id: str, form, now: str) -> dict[str, str]:
        days = str(form.days or "")
        day_count = safe_int(days) or 0
        start_city, end_city = infer_cities(form.journey)
        return {
            "Client_ID": client_id,
            "First_Name": form.first_name or "",
            "Last_Name": form.last_name or "",
            "Country": form.country or "",
            "Email": form.email or "",
            "WhatsApp_Country_Code": (form.country_code or "").replace("+", ""),
            "WhatsApp_Number": form.phone or "",
            "Journey_Interest": form.journey or "",
            "Start_Date": start_date_from_month(form.month, form.year),
            "Days": days,
            "Nights": str(day_count - 1 if day_count > 0 else 0),
            "Language": form.language or "",
            "Hospitality_Level": infer_hospitality_level(form.budget),
            "Requests": form.requests or "",
            "Hear_About_Us": form.hear_about_us or "",
            "Number_Travelers": str(form.travelers or ""),
            "Budget": str(form.budget or ""),
            "Start_City": start_city,
            "End_City": end_city,
            "Journey_Type": infer_journey_type(form.journey),
            "Status": QUOTE_NEW,
            "Created_Date": now,
            "Last_Updated": now,
        }

    async def submit_inquiry(self, form) -> dict:
        """Create a Quote from a trip-request form and notify the guest."""
        site = self.registry.require(form.site_id)
        now = utc_now_iso()

        async with self.issuer.reserve(site) as client_id:
            values = self._quote_values(client_id, form, now)
            headers = await self.store.headers(site.id, QUOTES) or QUOTE_COLUMNS
            row = [values.get(h, "") for h in headers]
            if not await self.store.append(site.id, QUOTES, [row]):
                raise StoreWriteError(f"Could not save journey request for {site.id}")

        logger.info("New inquiry {} for {}", client_id, site.id)

        await self.notifier.send_acknowledgment(
            site,
            first_name=form.first_name or "",
            email=form.email or "",
            journey=form.journey or "",
            month=form.month or "",
            year=str(form.year or ""),
            travelers=str(form.travelers or ""),
            days=str(form.days or "") or "flexible",
        )

        validation = validate_quote(values)
        if not validation.is_complete:
            logger.info("Inquiry {} incomplete: {}", client_id, validation.missing_fields)
            await self.notifier.send_missing_info(
                site,
                first_name=form.first_name or "",
                email=form.email or "",
                client_id=client_id,
                missing_fields=validation.missing_fields,
            )

        return {
            "client_id": client_id,
            "site_id": site.id,
            "is_complete": validation.is_complete,
            "missing_fields": validation.missing_fields,
            "message": (
                "Journey request submitted successfully. Generating itinerary..."
                if validation.is_complete
                else "Journey request submitted. We'll follow up for more details."
            ),
        }

    # ── Draft itinerary / approval request ──────────────────────────

    async def send_draft_itinerary(self, site_id: str, client_id: str) -> dict:
        site = self.registry.require(site_id)
        quote = await self.store.find_by_field(site.id, QUOTES, "Client_ID", client_id)
        if not quote:
            raise NotFoundError(f"Quote not found: {client_id}")

        proposal_url = quote.get("Proposal_URL") or f"{site.site_url}/proposal/{client_id}"
        if not await self.store.update_by_field(site.id, QUOTES, "Client_ID", client_id, {
            "Status": QUOTE_ITINERARY_READY,
            "Proposal_URL": proposal_url,
            "Last_Updated": utc_now_iso(),
        }):
            raise StoreWriteError(f"Failed to update quote {client_id}")

        sent = await self.notifier.send_draft_itinerary(
            site,
            first_name=quote.get("First_Name", ""),
            email=quote.get("Email", ""),
            client_id=client_id,
            proposal_url=proposal_url,
        )
        return {"client_id": client_id, "email_sent": sent}

    async def request_approval(self, client_id: str) -> dict:
        """Mark a proposal PENDING_APPROVAL and email the admin the links."""
        site = self.registry.for_client_id(client_id)
        if not site:
            raise NotFoundError(f"Unknown client ID format: {client_id}")
        proposal = await self.store.find_by_field(site.id, PROPOSALS, "Client_ID", client_id)
        if not proposal:
            raise NotFoundError(f"Proposal not found: {client_id}")
        quote = await self.store.find_by_field(site.id, QUOTES, "Client_ID", client_id) or {}

        if not await self.store.update_by_field(site.id, PROPOSALS, "Client_ID", client_id, {
            "Status": PROPOSAL_PENDING_APPROVAL,
            "Last_Updated": utc_now_iso(),
        }):
            raise StoreWriteError(f"Failed to update proposal {client_id}")

        links = approval_links(client_id)
        client_name = " ".join(
            p for p in (quote.get("First_Name"), quote.get("Last_Name")) if p
        ) or client_id
        summary = (
            proposal.get("Summary")
            or quote.get("Journey_Interest")
            or f"{proposal.get('Total_Price') or '0'} {site.currency}"
        )
        sent = await self.notifier.send_approval_request(
            site,
            client_id=client_id,
            client_name=client_name,
            proposal_summary=summary,
            approve_url=links["approve"],
            reject_url=links["reject"],
            resend_url=links["resend"],
        )
        return {"client_id": client_id, "site_id": site.id, "email_sent": sent}

    # ── Approval link ───────────────────────────────────────────────

    async def _send_payment_request(self, site: Site, client_id: str, proposal: dict) -> bool:
        quote = await self.store.find_by_field(site.id, QUOTES, "Client_ID", client_id)
        if not quote:
            logger.warning("No quote for approved proposal {}, payment email skipped", client_id)
            return False
        total = proposal.get("Total_Price") or "0"
        return await self.notifier.send_proposal_with_payment(
            site,
            first_name=quote.get("First_Name", ""),
            email=quote.get("Email", ""),
            client_id=client_id,
            proposal_url=proposal.get("Proposal_URL") or f"{site.site_url}/proposal/{client_id}",
            payment_url=payment_link(site, total),
            total_amount=total,
            currency=site.currency,
        )

    async def _update_quote_after_proposal(self, site: Site, client_id: str, patch: dict) -> bool:
        ok = await self.store.update_by_field(site.id, QUOTES, "Client_ID", client_id, patch)
        if not ok:
            logger.warning("Proposal {} updated but quote status write failed ({})",
                           client_id, patch.get("Status"))
        return ok

    async def handle_approval(self, action: str | None, client_id: str | None,
                              token: str | None, notes: str | None = None) -> ApprovalOutcome:
        if not action or not client_id:
            return ApprovalOutcome(400, "Error", "Missing required parameters.")

        if not verify_approval_token(client_id, token):
            logger.warning("Rejected approval link for {} (bad or expired token)", client_id)
            return ApprovalOutcome(403, "Error", "Invalid or expired link.")

        site = self.registry.for_client_id(client_id)
        if not site:
            return ApprovalOutcome(400, "Error", f"Unknown client ID format: {client_id}")

        if action not in APPROVAL_ACTIONS:
            return ApprovalOutcome(400, "Error", f"Unknown action: {action}")

        proposal = await self.store.find_by_field(site.id, PROPOSALS, "Client_ID", client_id)
        if not proposal:
            return ApprovalOutcome(404, "Error", f"Proposal not found: {client_id}")

        now = utc_now_iso()
        status = proposal.get("Status")
        already_approved = status in APPROVED_STATUSES

        if action == "approve":
            if already_approved:
                return ApprovalOutcome(
                    200, "Already approved",
                    f"Proposal {client_id} was already approved (status {status}). No email was sent again.",
                )
            ok = await self.store.update_by_field(site.id, PROPOSALS, "Client_ID", client_id, {
                "Status": PROPOSAL_APPROVED,
                "Approved_Date": now,
                "Last_Updated": now,
            })
            if not ok:
                return ApprovalOutcome(500, "Error", f"Could not update proposal {client_id}.")
            await self._update_quote_after_proposal(site, client_id, {
                "Status": QUOTE_PROPOSAL_APPROVED,
                "Last_Updated": now,
            })
            await self._send_payment_request(site, client_id, proposal)
            logger.info("Proposal {} approved", client_id)
            return ApprovalOutcome(
                200, "Approved ✓",
                f"Proposal {client_id} has been approved. The client will receive "
                "their proposal with payment link shortly.",
            )

        if action == "resend":
            if status not in (PROPOSAL_APPROVED, PROPOSAL_SENT):
                return ApprovalOutcome(
                    400, "Error", f"Proposal {client_id} is not awaiting payment; nothing to resend.",
                )
            sent = await self._send_payment_request(site, client_id, proposal)
            if not sent:
                return ApprovalOutcome(500, "Error", f"Could not resend the payment email for {client_id}.")
            logger.info("Payment email resent for {}", client_id)
            return ApprovalOutcome(
                200, "Resent ✓", f"The payment link for {client_id} has been sent again.",
            )

        # reject
        if status == PROPOSAL_PAID:
            return ApprovalOutcome(
                400, "Error", f"Proposal {client_id} is already paid and cannot be rejected.",
            )
        ok = await self.store.update_by_field(site.id, PROPOSALS, "Client_ID", client_id, {
            "Status": PROPOSAL_REJECTED,
            "Notes": notes or "Rejected by admin",
            "Last_Updated": now,
        })
        if not ok:
            return ApprovalOutcome(500, "Error", f"Could not update proposal {client_id}.")
        await self._update_quote_after_proposal(site, client_id, {
            "Status": QUOTE_PROPOSAL_REJECTED,
            "Notes": notes or "Proposal rejected",
            "Last_Updated": now,
        })
        logger.info("Proposal {} rejected", client_id)
        return ApprovalOutcome(
            200, "Rejected",
            f"Proposal {client_id} has been rejected." + (f" Notes: {notes}" if notes else ""),
        )

    # ── Payment notification ────────────────────────────────────────

    async def handle_payment(self, payload) -> dict:
        client_id = payload.client_id
        if not client_id or payload.status != "COMPLETED":
            logger.warning("Ignored payment notification {} status={}", client_id, payload.status)
            return {"success": False, "error": "Invalid payment notification"}

        site = self.registry.for_client_id(client_id)
        if not site:
            return {"success": False, "error": f"Unknown client ID format: {client_id}"}

        quote = await self.store.find_by_field(site.id, QUOTES, "Client_ID", client_id)
        if not quote:
            return {"success": False, "error": f"Quote not found: {client_id}"}

        now = utc_now_iso()
        paid = {
            "Payment_ID": payload.payment_id or "",
            "Payment_Date": now,
            "Last_Updated": now,
        }
        if not await self.store.update_by_field(site.id, QUOTES, "Client_ID", client_id,
                                                {"Status": QUOTE_PAID, **paid}):
            logger.error("Payment {} for {} not recorded, confirmation not sent",
                         payload.payment_id, client_id)
            return {"success": False, "error": f"Could not record payment for {client_id}"}
        if not await self.store.update_by_field(site.id, PROPOSALS, "Client_ID", client_id,
                                                {"Status": PROPOSAL_PAID, **paid}):
            logger.warning("Payment {} recorded on quote but not on proposal {}",
                           payload.payment_id, client_id)

        await self.notifier.send_payment_confirmation(
            site,
            first_name=quote.get("First_Name", ""),
            email=quote.get("Email", ""),
            client_id=client_id,
            amount=payload.amount or quote.get("Budget") or "0",
            currency=payload.currency or site.currency,
        )
        logger.info("Payment {} recorded for {}", payload.payment_id, client_id)
        return {
            "success": True,
            "clientId": client_id,
            "message": "Payment confirmed and client notified",
        }
