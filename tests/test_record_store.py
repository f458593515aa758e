"""
test_record_store.py — Tests for services/record_store.py

Verifies header-keyed reads, 1-based row indexing, read-modify-write
updates, and the fail-open / fail-closed error policy.

Called by: pytest
Depends on: conftest.py (store, sheets, seeded, read_record)
"""

import pytest

from sales_associate.services.record_store import RecordStoreError, rows_to_records
from sales_associate.statuses import PROPOSALS, QUOTES


class TestRowsToRecords:
    def test_header_only(self):
        assert rows_to_records([["Client_ID", "Status"]]) == []
        assert rows_to_records([]) == []

    def test_short_rows_padded(self):
        records = rows_to_records([["Client_ID", "Status", "Notes"], ["SM-2025-001", "NEW"]])
        assert records == [{"Client_ID": "SM-2025-001", "Status": "NEW", "Notes": ""}]


class TestReads:
    @pytest.mark.asyncio
    async def test_list_in_row_order(self, store, seeded):
        quotes = await store.list("slow-morocco", QUOTES)
        assert [q["Client_ID"] for q in quotes] == ["SM-2025-001", "SM-2025-002"]
        assert quotes[0]["First_Name"] == "Amina"

    @pytest.mark.asyncio
    async def test_list_missing_tab_is_empty(self, store, sheets):
        assert await store.list("slow-morocco", QUOTES) == []

    @pytest.mark.asyncio
    async def test_list_fails_open(self, store, seeded):
        seeded.failing.add("sheet-sm")
        assert await store.list("slow-morocco", QUOTES) == []

    @pytest.mark.asyncio
    async def test_unknown_site_fails_open(self, store, seeded):
        assert await store.list("slow-atlantis", QUOTES) == []

    @pytest.mark.asyncio
    async def test_find_by_field(self, store, seeded):
        quote = await store.find_by_field("slow-morocco", QUOTES, "Client_ID", "SM-2025-002")
        assert quote["First_Name"] == "Tom"
        assert await store.find_by_field("slow-morocco", QUOTES, "Client_ID", "SM-2025-999") is None

    @pytest.mark.asyncio
    async def test_find_row_index_counts_header(self, store, seeded):
        assert await store.find_row_index("slow-morocco", QUOTES, "Client_ID", "SM-2025-001") == 2
        assert await store.find_row_index("slow-morocco", QUOTES, "Client_ID", "SM-2025-002") == 3
        assert await store.find_row_index("slow-morocco", QUOTES, "Client_ID", "nope") is None
        assert await store.find_row_index("slow-morocco", QUOTES, "No_Such_Column", "x") is None

    @pytest.mark.asyncio
    async def test_get_full_row(self, store, sheets):
        sheets.tabs[("sheet-sm", QUOTES)] = [
            ["Client_ID", "Status", "Notes"],
            ["SM-2025-001", "NEW"],
        ]
        headers, row = await store.get_full_row("slow-morocco", QUOTES, "Client_ID", "SM-2025-001")
        assert headers == ["Client_ID", "Status", "Notes"]
        assert row == ["SM-2025-001", "NEW", ""]

    @pytest.mark.asyncio
    async def test_headers(self, store, seeded):
        headers = await store.headers("slow-morocco", PROPOSALS)
        assert headers[0] == "Client_ID"
        seeded.failing.add("sheet-sm")
        assert await store.headers("slow-morocco", PROPOSALS) == []


class TestWrites:
    @pytest.mark.asyncio
    async def test_update_then_find(self, store, seeded):
        ok = await store.update_by_field("slow-morocco", QUOTES, "Client_ID", "SM-2025-002",
                                         {"Status": "IN_PROGRESS", "Notes": "called"})
        assert ok is True
        quote = await store.find_by_field("slow-morocco", QUOTES, "Client_ID", "SM-2025-002")
        assert quote["Status"] == "IN_PROGRESS"
        assert quote["Notes"] == "called"
        assert quote["First_Name"] == "Tom"

    @pytest.mark.asyncio
    async def test_update_drops_unknown_columns(self, store, seeded, read_record):
        ok = await store.update_by_field("slow-morocco", QUOTES, "Client_ID", "SM-2025-001",
                                         {"Status": "PAID", "Favourite_Color": "blue"})
        assert ok is True
        row = read_record("sheet-sm", QUOTES, "SM-2025-001")
        assert row["Status"] == "PAID"
        assert "Favourite_Color" not in row

    @pytest.mark.asyncio
    async def test_update_writes_row_in_place(self, store, seeded):
        await store.update_by_field("slow-morocco", QUOTES, "Client_ID", "SM-2025-002",
                                    {"Status": "PRICED"})
        assert ("update", "sheet-sm", QUOTES, 3) in seeded.calls

    @pytest.mark.asyncio
    async def test_update_none_becomes_blank(self, store, seeded, read_record):
        await store.update_by_field("slow-morocco", QUOTES, "Client_ID", "SM-2025-001",
                                    {"Budget": None})
        assert read_record("sheet-sm", QUOTES, "SM-2025-001")["Budget"] == ""

    @pytest.mark.asyncio
    async def test_update_missing_record_is_false(self, store, seeded):
        assert await store.update_by_field("slow-morocco", QUOTES, "Client_ID", "SM-2025-404",
                                           {"Status": "PAID"}) is False

    @pytest.mark.asyncio
    async def test_update_fails_closed(self, store, seeded):
        seeded.failing.add("sheet-sm")
        assert await store.update_by_field("slow-morocco", QUOTES, "Client_ID", "SM-2025-001",
                                           {"Status": "PAID"}) is False

    @pytest.mark.asyncio
    async def test_append(self, store, seeded):
        assert await store.append("slow-namibia", QUOTES, [["SN-2025-002", "Jo"]]) is True
        quotes = await store.list("slow-namibia", QUOTES)
        assert quotes[-1]["Client_ID"] == "SN-2025-002"
        assert quotes[-1]["First_Name"] == "Jo"

    @pytest.mark.asyncio
    async def test_append_fails_closed(self, store, seeded):
        seeded.failing.add("sheet-sn")
        assert await store.append("slow-namibia", QUOTES, [["SN-2025-002"]]) is False

    @pytest.mark.asyncio
    async def test_append_unknown_site_is_false(self, store, seeded):
        assert await store.append("slow-atlantis", QUOTES, [["X"]]) is False

    @pytest.mark.asyncio
    async def test_delete_row(self, store, seeded):
        index = await store.find_row_index("slow-morocco", QUOTES, "Client_ID", "SM-2025-001")
        assert await store.delete_row("slow-morocco", QUOTES, index) is True
        remaining = await store.list("slow-morocco", QUOTES)
        assert [q["Client_ID"] for q in remaining] == ["SM-2025-002"]

    @pytest.mark.asyncio
    async def test_delete_header_row_refused(self, store, seeded):
        assert await store.delete_row("slow-morocco", QUOTES, 1) is False
        assert not any(c[0] == "delete" for c in seeded.calls)


class TestListStrict:
    @pytest.mark.asyncio
    async def test_returns_records(self, store, seeded):
        quotes = await store.list_strict("slow-morocco", QUOTES)
        assert [q["Client_ID"] for q in quotes] == ["SM-2025-001", "SM-2025-002"]

    @pytest.mark.asyncio
    async def test_read_failure_raises(self, store, seeded):
        seeded.failing.add("sheet-sm")
        with pytest.raises(RecordStoreError):
            await store.list_strict("slow-morocco", QUOTES)

    @pytest.mark.asyncio
    async def test_unknown_site_raises(self, store, seeded):
        with pytest.raises(RecordStoreError):
            await store.list_strict("slow-atlantis", QUOTES)
