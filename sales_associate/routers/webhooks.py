"""
webhooks.py — Inbound triggers for the status pipeline

- GET  /api/webhooks/approval         admin clicks approve / reject / resend in an email
- POST /api/webhooks/form-submission  country site posts a trip request
- POST /api/webhooks/paypal           payment processor (or relay) reports a payment

Business Rules:
- The approval endpoint is opened in a browser, so every outcome (including
  errors) is a small HTML page with the matching status code
- Payment notifications that are not COMPLETED get a 200 soft failure so the
  sender does not retry them

Called by: main.py (router mount)
Depends on: services/pipeline.py
"""

import html
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from loguru import logger

from ..dependencies import get_pipeline
from ..schemas.webhooks import FormSubmission, FormSubmissionResponse, PaymentNotification
from ..services.pipeline import ApprovalOutcome, StatusPipeline

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

_PAGE_COLORS = {
    "success": ("#f0fdf4", "#166534"),
    "rejected": ("#fef2f2", "#991b1b"),
    "other": ("#fefce8", "#854d0e"),
}


def render_page(title: str, message: str) -> str:
    if "✓" in title:
        bg, fg = _PAGE_COLORS["success"]
    elif title == "Rejected":
        bg, fg = _PAGE_COLORS["rejected"]
    else:
        bg, fg = _PAGE_COLORS["other"]
    title, message = html.escape(title), html.escape(message)
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title} - Sales Associate</title>
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
           display: flex; align-items: center; justify-content: center;
           min-height: 100vh; margin: 0; background: #f5f5f5; }}
    .card {{ background: white; padding: 48px; border-radius: 8px;
            box-shadow: 0 1px 3px rgba(0,0,0,0.1); text-align: center; max-width: 400px; }}
    .status {{ background: {bg}; color: {fg}; padding: 12px 24px; border-radius: 4px;
              font-size: 18px; font-weight: 600; margin-bottom: 16px; display: inline-block; }}
    .message {{ color: #333; line-height: 1.6; }}
    .close {{ margin-top: 24px; color: #666; font-size: 14px; }}
  </style>
</head>
<body>
  <div class="card">
    <div class="status">{title}</div>
    <p class="message">{message}</p>
    <p class="close">You can close this window.</p>
  </div>
</body>
</html>"""


def _page(outcome: ApprovalOutcome) -> HTMLResponse:
    return HTMLResponse(render_page(outcome.title, outcome.message), status_code=outcome.status_code)


@router.get("/approval", response_class=HTMLResponse)
async def approval(
    action: Optional[str] = Query(None),
    client_id: Optional[str] = Query(None, alias="clientId"),
    token: Optional[str] = Query(None),
    notes: Optional[str] = Query(None),
    pipeline: StatusPipeline = Depends(get_pipeline),
):
    try:
        outcome = await pipeline.handle_approval(action, client_id, token, notes)
    except Exception as e:
        logger.exception("Approval webhook error for {}", client_id)
        outcome = ApprovalOutcome(500, "Error", f"Something went wrong: {e}")
    return _page(outcome)


@router.post("/form-submission", response_model=FormSubmissionResponse)
async def form_submission(body: FormSubmission, pipeline: StatusPipeline = Depends(get_pipeline)):
    result = await pipeline.submit_inquiry(body)
    return {
        "success": True,
        "clientId": result["client_id"],
        "siteId": result["site_id"],
        "isComplete": result["is_complete"],
        "missingFields": result["missing_fields"],
        "message": result["message"],
    }


@router.post("/paypal")
async def paypal(body: PaymentNotification, pipeline: StatusPipeline = Depends(get_pipeline)):
    return await pipeline.handle_payment(body)
