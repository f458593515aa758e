"""
quotes.py — Quotes Router (list, detail, update, delete, duplicate, itinerary)

Business Rules:
- List aggregates all sites unless site_id is given; unknown site_id → 400
- Detail without site_id searches every site; not found → 404
- Update / delete / duplicate need both quote_id and site_id (400 otherwise)
- Send-itinerary moves the quote to ITINERARY_READY and emails the guest

Called by: main.py (router mount)
Depends on: services/aggregation, services/quote_service, services/pipeline
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from ..dependencies import get_pipeline, get_quote_service, get_registry, get_store
from ..schemas.quotes import (
    DuplicateResponse,
    OkResponse,
    QuoteDetailResponse,
    QuoteListResponse,
    QuoteRef,
    QuoteUpdate,
)
from ..services.aggregation import find_across_sites, list_across_sites
from ..services.pipeline import StatusPipeline
from ..services.quote_service import QuoteService
from ..services.record_store import RecordStore
from ..sites import SiteRegistry
from ..statuses import QUOTES

router = APIRouter(prefix="/api/quotes", tags=["quotes"])


def _require_ref(body: QuoteRef) -> tuple[str, str]:
    if not body.quote_id or not body.site_id:
        raise HTTPException(400, "Missing quote_id or site_id")
    return body.quote_id, body.site_id


@router.get("", response_model=QuoteListResponse)
async def list_quotes(
    site_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    store: RecordStore = Depends(get_store),
    registry: SiteRegistry = Depends(get_registry),
):
    """All quotes across sites (or one site), newest first."""
    quotes = await list_across_sites(store, registry, QUOTES, site_id=site_id, status=status)
    return {"success": True, "quotes": quotes, "count": len(quotes)}


@router.get("/{quote_id}", response_model=QuoteDetailResponse)
async def get_quote(
    quote_id: str,
    site_id: Optional[str] = Query(None),
    store: RecordStore = Depends(get_store),
    registry: SiteRegistry = Depends(get_registry),
):
    quote = await find_across_sites(store, registry, QUOTES, quote_id, site_id=site_id)
    if not quote:
        raise HTTPException(404, "Quote not found")
    return {"success": True, "quote": quote}


@router.post("/update", response_model=OkResponse)
async def update_quote(body: QuoteUpdate, service: QuoteService = Depends(get_quote_service)):
    quote_id, site_id = _require_ref(body)
    if not body.updates:
        raise HTTPException(400, "No updates provided")
    await service.update_quote(site_id, quote_id, body.updates)
    logger.info("Quote {} updated ({})", quote_id, ", ".join(sorted(body.updates)))
    return {"success": True}


@router.post("/delete", response_model=OkResponse)
async def delete_quote(body: QuoteRef, service: QuoteService = Depends(get_quote_service)):
    quote_id, site_id = _require_ref(body)
    await service.delete_quote(site_id, quote_id)
    return {"success": True}


@router.post("/duplicate", response_model=DuplicateResponse)
async def duplicate_quote(body: QuoteRef, service: QuoteService = Depends(get_quote_service)):
    quote_id, site_id = _require_ref(body)
    new_id = await service.duplicate_quote(site_id, quote_id)
    return {"success": True, "new_quote_id": new_id}


@router.post("/send-itinerary")
async def send_itinerary(body: QuoteRef, pipeline: StatusPipeline = Depends(get_pipeline)):
    """Email the guest their draft itinerary link."""
    quote_id, site_id = _require_ref(body)
    result = await pipeline.send_draft_itinerary(site_id, quote_id)
    return {"success": True, **result}
