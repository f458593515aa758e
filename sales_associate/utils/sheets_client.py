"""Google Sheets API client — service-account auth + retry wrapper.

Usage:
    from sales_associate.utils.sheets_client import SheetsClient, ServiceAccountAuth
    sc = SheetsClient(ServiceAccountAuth.from_settings(settings))
    rows = await sc.get_values(spreadsheet_id, "Quotes")
    await sc.update_row(spreadsheet_id, "Quotes", 5, ["SM-2025-004", ...])

Row indexes are 1-based and count the header row, the way the sheet UI
numbers them.
"""
import asyncio
import base64
import json
import time
from urllib.parse import quote

from authlib.jose import jwt
from loguru import logger

from ..config import Settings
from ..http_client import http

SHEETS_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = "https://www.googleapis.com/auth/spreadsheets"

# Retry config, exponential: 1, 2, 4
MAX_RETRIES = 3
BACKOFF_BASE = 2

# Refresh tokens this many seconds before Google says they expire
TOKEN_REFRESH_MARGIN = 120


class SheetsError(Exception):
    """Non-retryable Sheets API failure (or retries exhausted)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ServiceAccountAuth:
    """Mints and caches OAuth access tokens for a Google service account."""

    def __init__(self, client_email: str, private_key: str, token_uri: str = TOKEN_URI):
        self.client_email = client_email
        self.private_key = private_key
        self.token_uri = token_uri or TOKEN_URI
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceAccountAuth":
        """Base64 JSON key wins; otherwise the two individual env vars."""
        if settings.google_service_account_base64:
            info = json.loads(
                base64.b64decode(settings.google_service_account_base64).decode("utf-8")
            )
            return cls(
                info.get("client_email", ""),
                info.get("private_key", ""),
                info.get("token_uri", TOKEN_URI),
            )
        return cls(
            settings.google_client_email,
            settings.google_private_key.replace("\\n", "\n"),
        )

    @property
    def configured(self) -> bool:
        return bool(self.client_email and self.private_key)

    def _assertion(self, now: int) -> str:
        claims = {
            "iss": self.client_email,
            "scope": SCOPES,
            "aud": self.token_uri,
            "iat": now,
            "exp": now + 3600,
        }
        token = jwt.encode({"alg": "RS256", "typ": "JWT"}, claims, self.private_key)
        return token.decode("ascii") if isinstance(token, bytes) else token

    async def get_token(self) -> str:
        async with self._lock:
            if self._token and time.time() < self._expires_at:
                return self._token
            if not self.configured:
                raise SheetsError("Google service account not configured")

            now = int(time.time())
            resp = await http.post(
                self.token_uri,
                data={
                    "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
                    "assertion": self._assertion(now),
                },
                timeout=15,
            )
            if resp.status_code != 200:
                raise SheetsError(
                    f"Token exchange failed: {resp.status_code} {resp.text[:200]}",
                    resp.status_code,
                )
            data = resp.json()
            self._token = data["access_token"]
            self._expires_at = now + int(data.get("expires_in", 3600)) - TOKEN_REFRESH_MARGIN
            logger.debug("Google access token refreshed for {}", self.client_email)
            return self._token


def _range(tab: str, row_index: int | None = None) -> str:
    if row_index is None:
        return quote(f"{tab}!A:ZZ", safe="")
    return quote(f"{tab}!A{row_index}:ZZ{row_index}", safe="")


class SheetsClient:
    """Thin wrapper around the Sheets v4 values API with retry."""

    def __init__(self, auth: ServiceAccountAuth, timeout: float = 30):
        self.auth = auth
        self.timeout = timeout

    async def get_values(self, spreadsheet_id: str, tab: str) -> list[list[str]]:
        """All rows of a tab, header row first. Trailing blank cells are omitted by Google."""
        url = f"{SHEETS_BASE}/{spreadsheet_id}/values/{_range(tab)}"
        data = await self._request("GET", url)
        return data.get("values", [])

    async def append_values(self, spreadsheet_id: str, tab: str, rows: list[list]) -> None:
        url = f"{SHEETS_BASE}/{spreadsheet_id}/values/{_range(tab)}:append"
        await self._request(
            "POST", url,
            params={"valueInputOption": "USER_ENTERED"},
            json_data={"values": rows},
        )

    async def update_row(self, spreadsheet_id: str, tab: str, row_index: int,
                         values: list) -> None:
        url = f"{SHEETS_BASE}/{spreadsheet_id}/values/{_range(tab, row_index)}"
        await self._request(
            "PUT", url,
            params={"valueInputOption": "USER_ENTERED"},
            json_data={"values": [values]},
        )

    async def get_tab_id(self, spreadsheet_id: str, tab: str) -> int | None:
        """Numeric sheetId of a tab (0 is a valid id)."""
        url = f"{SHEETS_BASE}/{spreadsheet_id}"
        data = await self._request("GET", url, params={"fields": "sheets.properties"})
        for sheet in data.get("sheets", []):
            props = sheet.get("properties", {})
            if props.get("title") == tab:
                return props.get("sheetId")
        return None

    async def delete_row(self, spreadsheet_id: str, tab: str, row_index: int) -> None:
        tab_id = await self.get_tab_id(spreadsheet_id, tab)
        if tab_id is None:
            raise SheetsError(f"Tab {tab} not found")
        url = f"{SHEETS_BASE}/{spreadsheet_id}:batchUpdate"
        await self._request("POST", url, json_data={
            "requests": [{
                "deleteDimension": {
                    "range": {
                        "sheetId": tab_id,
                        "dimension": "ROWS",
                        "startIndex": row_index - 1,
                        "endIndex": row_index,
                    }
                }
            }]
        })

    # ── Internal retry logic ────────────────────────────────────────

    async def _request(self, method: str, url: str, params: dict | None = None,
                       json_data: dict | None = None) -> dict:
        """Execute HTTP request with exponential backoff on 429 / 5xx."""
        token = await self.auth.get_token()
        headers = {"Authorization": f"Bearer {token}"}

        for attempt in range(MAX_RETRIES + 1):
            resp = await http.request(
                method, url, params=params, json=json_data,
                headers=headers, timeout=self.timeout,
            )
            if resp.status_code in (200, 201):
                return resp.json() if resp.content else {}
            if resp.status_code == 204:
                return {}

            if (resp.status_code == 429 or resp.status_code >= 500) and attempt < MAX_RETRIES:
                wait = BACKOFF_BASE ** attempt
                logger.warning(
                    "Sheets {}, retry in {}s (attempt {})",
                    resp.status_code, wait, attempt + 1,
                )
                await asyncio.sleep(wait)
                continue

            raise SheetsError(
                f"Sheets {method} failed: {resp.status_code} {resp.text[:200]}",
                resp.status_code,
            )

        raise SheetsError(f"Sheets {method} failed after {MAX_RETRIES} retries")
