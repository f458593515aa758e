"""Proposals API — cross-site listing and admin approval requests."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_pipeline, get_registry, get_store
from ..schemas.quotes import ProposalListResponse, ProposalRef
from ..services.aggregation import list_across_sites
from ..services.pipeline import StatusPipeline
from ..services.record_store import RecordStore
from ..sites import SiteRegistry
from ..statuses import PROPOSALS

router = APIRouter(prefix="/api/proposals", tags=["proposals"])


@router.get("", response_model=ProposalListResponse)
async def list_proposals(
    site_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    store: RecordStore = Depends(get_store),
    registry: SiteRegistry = Depends(get_registry),
):
    proposals = await list_across_sites(store, registry, PROPOSALS, site_id=site_id, status=status)
    return {"success": True, "proposals": proposals, "count": len(proposals)}


@router.post("/request-approval")
async def request_approval(body: ProposalRef, pipeline: StatusPipeline = Depends(get_pipeline)):
    """Mark a proposal pending and email the admin approve/reject links."""
    if not body.client_id:
        raise HTTPException(400, "Missing client_id")
    result = await pipeline.request_approval(body.client_id)
    return {"success": True, **result}
