"""Sites API — the configured countries, for dashboard filters."""

from fastapi import APIRouter, Depends

from ..dependencies import get_registry
from ..schemas.quotes import SiteItem
from ..sites import SiteRegistry

router = APIRouter(tags=["sites"])


@router.get("/api/sites", response_model=list[SiteItem])
def list_sites(registry: SiteRegistry = Depends(get_registry)):
    return [
        {
            "id": s.id,
            "name": s.name,
            "site_url": s.site_url,
            "currency": s.currency,
            "client_id_prefix": s.client_id_prefix,
        }
        for s in registry.list_all()
    ]
