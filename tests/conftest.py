"""
conftest.py — Shared Test Fixtures for Sales Associate

Provides an in-memory spreadsheet backend, a small site registry, a
recording email notifier, and a FastAPI TestClient with dependency
overrides so no test touches Google Sheets or Resend.

Business Rules:
- Every test gets fresh sheets (no shared state between tests)
- Emails are recorded, never sent
- Sheets can be made to fail or hang per spreadsheet id

Called by: all test files via pytest autodiscovery
Depends on: sales_associate.dependencies, sales_associate.services.*
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from sales_associate.dependencies import get_notifier, get_registry, get_store
from sales_associate.main import app
from sales_associate.services.client_ids import ClientIdIssuer
from sales_associate.services.notifications import EmailNotifier
from sales_associate.services.pipeline import StatusPipeline
from sales_associate.services.record_store import RecordStore
from sales_associate.sites import Site, SiteRegistry
from sales_associate.statuses import PROPOSALS, QUOTE_COLUMNS, QUOTES
from sales_associate.utils.sheets_client import SheetsError

QUOTE_HEADERS = QUOTE_COLUMNS + ["Payment_ID", "Payment_Date"]
PROPOSAL_HEADERS = [
    "Client_ID", "Status", "Total_Price", "Proposal_URL", "Summary",
    "Approved_Date", "Payment_ID", "Payment_Date", "Notes",
    "Created_Date", "Last_Updated",
]


# ── In-memory sheets ─────────────────────────────────────────────────


class FakeSheets:
    """Implements the TabularBackend calls over plain lists of rows."""

    def __init__(self):
        self.tabs: dict[tuple[str, str], list[list[str]]] = {}
        self.failing: set[str] = set()
        self.hanging: set[str] = set()
        self.calls: list[tuple] = []

    async def _check(self, spreadsheet_id: str):
        if spreadsheet_id in self.hanging:
            await asyncio.sleep(60)
        if spreadsheet_id in self.failing:
            raise SheetsError("Sheets GET failed: 503 backend unavailable", 503)

    def seed(self, spreadsheet_id: str, tab: str, headers: list[str], records: list[dict]):
        rows = [list(headers)]
        rows += [[str(r.get(h, "")) for h in headers] for r in records]
        self.tabs[(spreadsheet_id, tab)] = rows

    def rows(self, spreadsheet_id: str, tab: str) -> list[list[str]]:
        return self.tabs.get((spreadsheet_id, tab), [])

    async def get_values(self, spreadsheet_id, tab):
        self.calls.append(("get", spreadsheet_id, tab))
        await self._check(spreadsheet_id)
        return [list(r) for r in self.rows(spreadsheet_id, tab)]

    async def append_values(self, spreadsheet_id, tab, rows):
        self.calls.append(("append", spreadsheet_id, tab))
        await self._check(spreadsheet_id)
        self.tabs.setdefault((spreadsheet_id, tab), []).extend(
            [[str(c) for c in row] for row in rows]
        )

    async def update_row(self, spreadsheet_id, tab, row_index, values):
        self.calls.append(("update", spreadsheet_id, tab, row_index))
        await self._check(spreadsheet_id)
        self.tabs[(spreadsheet_id, tab)][row_index - 1] = [str(v) for v in values]

    async def delete_row(self, spreadsheet_id, tab, row_index):
        self.calls.append(("delete", spreadsheet_id, tab, row_index))
        await self._check(spreadsheet_id)
        del self.tabs[(spreadsheet_id, tab)][row_index - 1]


class RecordingNotifier(EmailNotifier):
    """Renders every email but records it instead of calling Resend."""

    def __init__(self):
        super().__init__(api_key="re_test", sender="Test <test@example.com>",
                         admin_email="admin@example.com")
        self.sent: list[dict] = []

    async def send_email(self, site, to, subject, body_html):
        self.sent.append({"site_id": site.id, "to": to, "subject": subject, "html": body_html})
        return True

    def subjects(self) -> list[str]:
        return [m["subject"] for m in self.sent]


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture()
def registry():
    return SiteRegistry([
        Site("slow-morocco", "Slow Morocco", "sheet-sm", "https://slowmorocco.com",
             "hello@slowmorocco.com", "EUR", "SM"),
        Site("slow-namibia", "Slow Namibia", "sheet-sn", "https://slownamibia.com",
             "hello@slownamibia.com", "EUR", "SN"),
        Site("slow-tunisia", "Slow Tunisia", "sheet-stu", "https://slowtunisia.com",
             "hello@slowtunisia.com", "EUR", "STU"),
    ])


@pytest.fixture()
def sheets():
    return FakeSheets()


@pytest.fixture()
def store(registry, sheets):
    return RecordStore(registry, sheets)


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def pipeline(store, registry, notifier):
    return StatusPipeline(store, registry, notifier, ClientIdIssuer(store))


@pytest.fixture()
def seeded(sheets):
    """Two Moroccan quotes (one with a proposal), one Namibian, one Tunisian."""
    sheets.seed("sheet-sm", QUOTES, QUOTE_HEADERS, [
        {"Client_ID": "SM-2025-001", "First_Name": "Amina", "Last_Name": "Benali",
         "Email": "amina@example.com", "Journey_Interest": "Sahara Desert",
         "Days": "8", "Number_Travelers": "2", "Budget": "4000",
         "Status": "PRICED", "Created_Date": "2025-03-01T10:00:00.000Z"},
        {"Client_ID": "SM-2025-002", "First_Name": "Tom", "Email": "tom@example.com",
         "Status": "NEW", "Created_Date": "2025-03-05T10:00:00.000Z"},
    ])
    sheets.seed("sheet-sm", PROPOSALS, PROPOSAL_HEADERS, [
        {"Client_ID": "SM-2025-001", "Status": "DRAFT", "Total_Price": "4200",
         "Proposal_URL": "https://slowmorocco.com/proposal/SM-2025-001",
         "Created_Date": "2025-03-02T10:00:00.000Z"},
    ])
    sheets.seed("sheet-sn", QUOTES, QUOTE_HEADERS, [
        {"Client_ID": "SN-2025-001", "First_Name": "Lena", "Email": "lena@example.com",
         "Status": "NEW", "Created_Date": "2025-03-03T10:00:00.000Z"},
    ])
    sheets.seed("sheet-sn", PROPOSALS, PROPOSAL_HEADERS, [])
    sheets.seed("sheet-stu", QUOTES, QUOTE_HEADERS, [
        {"Client_ID": "STU-2025-001", "First_Name": "Karim", "Email": "karim@example.com",
         "Status": "IN_PROGRESS", "Created_Date": ""},
    ])
    sheets.seed("sheet-stu", PROPOSALS, PROPOSAL_HEADERS, [])
    return sheets


@pytest.fixture()
def client(store, registry, notifier):
    """TestClient with store, registry and notifier overridden.

    Not used as a context manager: lifespan would close the shared httpx client.
    """
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture()
def read_record(sheets):
    """Read one row back out of the fake sheet as a dict."""

    def _read(spreadsheet_id: str, tab: str, client_id: str) -> dict | None:
        rows = sheets.rows(spreadsheet_id, tab)
        if not rows:
            return None
        headers = rows[0]
        for row in rows[1:]:
            if row and row[0] == client_id:
                return dict(zip(headers, row + [""] * (len(headers) - len(row))))
        return None

    return _read
