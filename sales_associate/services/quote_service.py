"""
quote_service.py — Manual edits from the dashboard: update, delete, duplicate

Business Rules:
- Update overlays the given columns onto the quote row (unknown columns dropped)
- Delete removes the physical row; the index is looked up immediately before
- Duplicate copies the row with a fresh Client ID, today's Created_Date and
  Status reset to NEW

Called by: routers/quotes.py
Depends on: services/record_store.py, services/client_ids.py
"""

from loguru import logger

from ..errors import NotFoundError, StoreWriteError
from ..sites import SiteRegistry
from ..statuses import QUOTE_NEW, QUOTES
from ..utils import today_iso, utc_now_iso
from .client_ids import ClientIdIssuer
from .record_store import RecordStore


class QuoteService:
    def __init__(self, store: RecordStore, registry: SiteRegistry,
                 issuer: ClientIdIssuer | None = None):
        self.store = store
        self.registry = registry
        self.issuer = issuer or ClientIdIssuer(store)

    async def update_quote(self, site_id: str, quote_id: str, updates: dict) -> None:
        site = self.registry.require(site_id)
        patch = {k: v for k, v in updates.items() if k != "Client_ID"}
        patch.setdefault("Last_Updated", utc_now_iso())
        if not await self.store.update_by_field(site.id, QUOTES, "Client_ID", quote_id, patch):
            raise StoreWriteError("Failed to update quote")

    async def delete_quote(self, site_id: str, quote_id: str) -> None:
        site = self.registry.require(site_id)
        row_index = await self.store.find_row_index(site.id, QUOTES, "Client_ID", quote_id)
        if not row_index:
            raise NotFoundError("Quote not found")
        if not await self.store.delete_row(site.id, QUOTES, row_index):
            raise StoreWriteError("Failed to delete quote")
        logger.info("Quote {} deleted from {}", quote_id, site.id)

    async def duplicate_quote(self, site_id: str, quote_id: str) -> str:
        """Copy a quote under a new Client ID. Returns the new ID."""
        site = self.registry.require(site_id)
        found = await self.store.get_full_row(site.id, QUOTES, "Client_ID", quote_id)
        if not found:
            raise NotFoundError("Quote not found")
        headers, row = found

        async with self.issuer.reserve(site) as new_id:
            reset = {
                "Client_ID": new_id,
                "Created_Date": today_iso(),
                "Status": QUOTE_NEW,
            }
            new_row = [reset.get(h, cell) for h, cell in zip(headers, row)]
            if not await self.store.append(site.id, QUOTES, [new_row]):
                raise StoreWriteError("Failed to duplicate quote")

        logger.info("Quote {} duplicated as {} ({})", quote_id, new_id, site.id)
        return new_id
