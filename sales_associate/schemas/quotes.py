"""
schemas/quotes.py — Pydantic models for quote and proposal endpoints

Business Rules:
- quote_id / site_id are checked in the router so a missing one is a 400
  with a readable message, not a 422
- Records are passed through as-is (every cell is a string)

Called by: routers/quotes.py, routers/proposals.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class QuoteRef(BaseModel):
    """Identifies one quote in one site."""
    quote_id: Optional[str] = None
    site_id: Optional[str] = None


class QuoteUpdate(QuoteRef):
    """Column → new value overlay for one quote row."""
    updates: Optional[dict[str, Any]] = None


class ProposalRef(BaseModel):
    client_id: Optional[str] = None


class QuoteListResponse(BaseModel):
    success: bool = True
    quotes: list[dict] = Field(default_factory=list)
    count: int = 0


class ProposalListResponse(BaseModel):
    success: bool = True
    proposals: list[dict] = Field(default_factory=list)
    count: int = 0


class QuoteDetailResponse(BaseModel):
    success: bool = True
    quote: dict


class DuplicateResponse(BaseModel):
    success: bool = True
    new_quote_id: str


class OkResponse(BaseModel):
    success: bool = True


class SiteItem(BaseModel):
    id: str
    name: str
    site_url: str
    currency: str
    client_id_prefix: str
