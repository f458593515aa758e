"""
schemas/webhooks.py — Pydantic models for inbound webhooks

Business Rules:
- Form submissions use the site forms' camelCase keys (firstName, countryCode…)
- Numbers may arrive as JSON numbers or strings; both are kept as text
- Payment payload is validated loosely; the pipeline decides acceptance

Called by: routers/webhooks.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(v):
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


class FormSubmission(BaseModel):
    """Trip request posted by a country site's plan-your-trip form."""
    model_config = ConfigDict(populate_by_name=True)

    site_id: Optional[str] = None
    journey: Optional[str] = None
    month: Optional[str] = None
    year: Optional[str] = None
    travelers: Optional[str] = None
    days: Optional[str] = None
    language: Optional[str] = None
    budget: Optional[str] = None
    requests: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    country_code: Optional[str] = Field(None, alias="countryCode")
    country: Optional[str] = None
    hear_about_us: Optional[str] = Field(None, alias="hearAboutUs")

    @field_validator("year", "travelers", "days", "budget", "phone", mode="before")
    @classmethod
    def numbers_as_text(cls, v):
        return _as_text(v)


class FormSubmissionResponse(BaseModel):
    success: bool = True
    clientId: str
    siteId: str
    isComplete: bool
    missingFields: list[str] = Field(default_factory=list)
    message: str


class PaymentNotification(BaseModel):
    """PayPal (or relay) notification for a completed payment."""
    model_config = ConfigDict(populate_by_name=True)

    client_id: Optional[str] = Field(None, alias="clientId")
    payment_id: Optional[str] = Field(None, alias="paymentId")
    amount: Optional[str] = None
    currency: Optional[str] = None
    payer_email: Optional[str] = Field(None, alias="payerEmail")
    status: Optional[str] = None

    @field_validator("amount", "payment_id", mode="before")
    @classmethod
    def numbers_as_text(cls, v):
        return _as_text(v)
