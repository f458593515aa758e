"""
aggregation.py — Cross-site reads with per-site fault isolation

One shared implementation behind every list endpoint: fan a tab read out
to every registered site (or one), tag, merge, filter and sort.

Business Rules:
- Sites are read concurrently; each read is bounded by store_timeout_seconds
- A failing or slow site is logged and skipped, never surfaced to the caller
- Every record is tagged with site_id and site_name
- Invalid rows are dropped: Client_ID missing, equal to "Client_ID"
  (header leaked into data), or containing a comma
- Optional exact Status filter
- Sorted by Created_Date, newest first; missing/unparsable dates sort last

Called by: routers/quotes.py, routers/proposals.py
Depends on: services/record_store.py, sites.py
"""

import asyncio

from loguru import logger

from ..config import settings
from ..sites import Site, SiteRegistry
from ..utils import parse_timestamp
from .record_store import RecordStore


def is_valid_record(record: dict) -> bool:
    cid = record.get("Client_ID")
    return bool(cid) and cid != "Client_ID" and "," not in cid


def sort_newest_first(records: list[dict]) -> list[dict]:
    return sorted(records, key=lambda r: parse_timestamp(r.get("Created_Date")), reverse=True)


async def _read_site(store: RecordStore, site: Site, table: str,
                     timeout: float) -> list[dict]:
    try:
        rows = await asyncio.wait_for(store.list(site.id, table), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Timed out reading {} for {} after {}s", table, site.id, timeout)
        return []
    except Exception as e:
        logger.error("Error fetching {} for {}: {}", table, site.id, e)
        return []
    return [{**row, "site_id": site.id, "site_name": site.name} for row in rows]


async def list_across_sites(
    store: RecordStore,
    registry: SiteRegistry,
    table: str,
    site_id: str | None = None,
    status: str | None = None,
    timeout: float | None = None,
) -> list[dict]:
    """Merged, filtered, newest-first records of one tab across sites."""
    if site_id:
        sites = [registry.require(site_id)]
    else:
        sites = registry.list_all()
    timeout = timeout or settings.store_timeout_seconds

    per_site = await asyncio.gather(*[_read_site(store, s, table, timeout) for s in sites])

    merged = [r for rows in per_site for r in rows if is_valid_record(r)]
    if status:
        merged = [r for r in merged if r.get("Status") == status]

    logger.debug("{}: {} record(s) from {} site(s)", table, len(merged), len(sites))
    return sort_newest_first(merged)


async def find_across_sites(
    store: RecordStore,
    registry: SiteRegistry,
    table: str,
    client_id: str,
    site_id: str | None = None,
) -> dict | None:
    """One record by Client_ID, tagged with its site. Searches sites in registry order."""
    sites = [registry.require(site_id)] if site_id else registry.list_all()
    for site in sites:
        record = await store.find_by_field(site.id, table, "Client_ID", client_id)
        if record:
            return {**record, "site_id": site.id, "site_name": site.name}
    return None
