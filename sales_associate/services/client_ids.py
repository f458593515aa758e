"""
client_ids.py — Sequential Client ID issuance ({prefix}-{year}-{seq})

Business Rules:
- Scan the site's Quotes for IDs starting with "{prefix}-{year}-"
- Next ID = max numeric suffix + 1, zero-padded to 3 digits (first is 001)
- IDs from other years and non-numeric suffixes are ignored
- An unreadable Quotes tab is an error (StoreWriteError), never "no IDs yet"
- Issuance is serialized per site inside this process: the lock is held
  from scan until the caller has appended its row. Separate processes can
  still race; the sheet itself enforces no uniqueness.

Called by: services/pipeline.py (form submission), services/quote_service.py (duplicate)
Depends on: services/record_store.py, sites.py
"""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from loguru import logger

from ..errors import StoreWriteError
from ..sites import Site
from ..statuses import QUOTES
from ..utils import safe_int
from .record_store import RecordStore, RecordStoreError


async def next_client_id(store: RecordStore, site: Site, year: int | None = None) -> str:
    """Next free Client ID for a site and year (default: current UTC year)."""
    year = year or datetime.now(timezone.utc).year
    prefix = f"{site.client_id_prefix}-{year}-"

    try:
        quotes = await store.list_strict(site.id, QUOTES)
    except RecordStoreError as e:
        logger.error("Cannot issue a Client ID for {}: {}", site.id, e)
        raise StoreWriteError(f"Could not read existing Client IDs for {site.id}") from e

    numbers = []
    for quote in quotes:
        cid = quote.get("Client_ID") or ""
        if not cid.startswith(prefix):
            continue
        n = safe_int(cid[len(prefix):])
        if n is not None:
            numbers.append(n)

    highest = max(numbers) if numbers else 0
    return f"{prefix}{highest + 1:03d}"


class ClientIdIssuer:
    """Hands out Client IDs one at a time per site."""

    def __init__(self, store: RecordStore):
        self.store = store
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def reserve(self, site: Site):
        """Yield the next ID while holding the site lock.

        Append the new row inside the block so the next caller sees it.
        """
        async with self._locks[site.id]:
            client_id = await next_client_id(self.store, site)
            logger.debug("Reserved {} for {}", client_id, site.id)
            yield client_id
