"""
record_store.py — Record Store Adapter over per-site spreadsheets

Translates {site, table, field, value} operations into Sheets API calls.
Row 1 of every tab holds the column headers; every cell is text.

Business Rules:
- No cache: every operation re-reads, because humans edit the sheets directly
- Reads fail open: any store error → [] / None, logged, never raised.
  list_strict() is the exception, for callers that must not mistake an
  outage for an empty sheet (Client ID issuance)
- Writes fail closed: any store error → False, logged, never raised
- update_by_field is read-modify-write on the first matching row; patch keys
  missing from the headers are dropped; last write wins
- Row indexes are 1-based and include the header row (first record = row 2)

Called by: services/aggregation.py, services/pipeline.py, services/quote_service.py
Depends on: sites.py, utils/sheets_client.py
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from ..sites import SiteRegistry, UnknownSiteError


class RecordStoreError(Exception):
    """Anything that goes wrong below the adapter. Never escapes it."""


class RecordNotFound(RecordStoreError):
    pass


class TabularBackend(Protocol):
    """What the adapter needs from the remote table service."""

    async def get_values(self, spreadsheet_id: str, tab: str) -> list[list[str]]: ...

    async def append_values(self, spreadsheet_id: str, tab: str, rows: list[list]) -> None: ...

    async def update_row(self, spreadsheet_id: str, tab: str, row_index: int,
                         values: list) -> None: ...

    async def delete_row(self, spreadsheet_id: str, tab: str, row_index: int) -> None: ...


def rows_to_records(rows: list[list]) -> list[dict[str, str]]:
    """Header row → dict keys. Short rows are padded with ""."""
    if not rows or len(rows) < 2:
        return []
    headers = [str(h) for h in rows[0]]
    records = []
    for row in rows[1:]:
        record = {}
        for i, header in enumerate(headers):
            value = row[i] if i < len(row) else ""
            record[header] = "" if value is None else str(value)
        records.append(record)
    return records


def _locate(rows: list[list], field: str, value: str) -> int | None:
    """0-based position in rows of the first data row whose field equals value."""
    if len(rows) < 2:
        return None
    headers = [str(h) for h in rows[0]]
    if field not in headers:
        return None
    col = headers.index(field)
    for i in range(1, len(rows)):
        row = rows[i]
        if col < len(row) and str(row[col]) == value:
            return i
    return None


class RecordStore:
    """Site-aware CRUD over the tabs of each site's spreadsheet."""

    def __init__(self, registry: SiteRegistry, backend: TabularBackend):
        self.registry = registry
        self.backend = backend

    def _sheet_id(self, site_id: str) -> str:
        site = self.registry.get(site_id)
        if site is None:
            raise UnknownSiteError(site_id)
        if not site.sheet_id:
            raise RecordStoreError(f"No spreadsheet configured for {site_id}")
        return site.sheet_id

    async def _rows(self, site_id: str, table: str) -> list[list]:
        return await self.backend.get_values(self._sheet_id(site_id), table)

    # ── Reads (fail open) ───────────────────────────────────────────

    async def list(self, site_id: str, table: str) -> list[dict[str, str]]:
        """All records of a tab, in row order."""
        try:
            return rows_to_records(await self._rows(site_id, table))
        except Exception as e:
            logger.error("Error fetching {} for {}: {}", table, site_id, e)
            return []

    async def list_strict(self, site_id: str, table: str) -> list[dict[str, str]]:
        """Like list(), but a failed read raises RecordStoreError instead of looking empty."""
        try:
            return rows_to_records(await self._rows(site_id, table))
        except RecordStoreError:
            raise
        except Exception as e:
            raise RecordStoreError(f"Could not read {table} for {site_id}: {e}") from e

    async def headers(self, site_id: str, table: str) -> list[str]:
        try:
            rows = await self._rows(site_id, table)
        except Exception as e:
            logger.error("Error reading headers of {} for {}: {}", table, site_id, e)
            return []
        return [str(h) for h in rows[0]] if rows else []

    async def find_by_field(self, site_id: str, table: str, field: str,
                            value: str) -> dict[str, str] | None:
        for record in await self.list(site_id, table):
            if record.get(field) == value:
                return record
        return None

    async def find_row_index(self, site_id: str, table: str, field: str,
                             value: str) -> int | None:
        """1-based sheet row of the first match (header is row 1)."""
        try:
            rows = await self._rows(site_id, table)
        except Exception as e:
            logger.error("Error finding row in {} for {}: {}", table, site_id, e)
            return None
        pos = _locate(rows, field, value)
        return None if pos is None else pos + 1

    async def get_full_row(self, site_id: str, table: str, field: str,
                           value: str) -> tuple[list[str], list[str]] | None:
        """(headers, raw row) of the first match, row padded to header width."""
        try:
            rows = await self._rows(site_id, table)
        except Exception as e:
            logger.error("Error getting row data in {} for {}: {}", table, site_id, e)
            return None
        pos = _locate(rows, field, value)
        if pos is None:
            return None
        headers = [str(h) for h in rows[0]]
        row = [str(c) for c in rows[pos]]
        row += [""] * (len(headers) - len(row))
        return headers, row

    # ── Writes (fail closed) ────────────────────────────────────────

    async def append(self, site_id: str, table: str, rows: list[list]) -> bool:
        """Append positional rows; callers order cells to match the headers."""
        try:
            await self.backend.append_values(self._sheet_id(site_id), table, rows)
        except Exception as e:
            logger.error("Error appending to {} for {}: {}", table, site_id, e)
            return False
        logger.info("Appended {} row(s) to {} for {}", len(rows), table, site_id)
        return True

    async def update_by_field(self, site_id: str, table: str, field: str, value: str,
                              patch: dict[str, object]) -> bool:
        """Overlay patch onto the first matching row and write it back in place."""
        try:
            sheet_id = self._sheet_id(site_id)
            rows = await self.backend.get_values(sheet_id, table)
            pos = _locate(rows, field, value)
            if pos is None:
                raise RecordNotFound(f"{field}={value} not in {table}")

            headers = [str(h) for h in rows[0]]
            updated = [str(c) for c in rows[pos]]
            updated += [""] * (len(headers) - len(updated))
            for key, new_value in patch.items():
                if key in headers:
                    updated[headers.index(key)] = "" if new_value is None else str(new_value)

            await self.backend.update_row(sheet_id, table, pos + 1, updated)
        except Exception as e:
            logger.error("Error updating record in {} for {}: {}", table, site_id, e)
            return False
        logger.info("Updated {} {}={} fields={}", table, field, value, sorted(patch))
        return True

    async def delete_row(self, site_id: str, table: str, row_index: int) -> bool:
        """Remove one sheet row. row_index comes from find_row_index."""
        if row_index < 2:
            logger.error("Refusing to delete header row of {} for {}", table, site_id)
            return False
        try:
            await self.backend.delete_row(self._sheet_id(site_id), table, row_index)
        except Exception as e:
            logger.error("Error deleting row {} in {} for {}: {}", row_index, table, site_id, e)
            return False
        logger.info("Deleted row {} of {} for {}", row_index, table, site_id)
        return True
