"""
sites.py — Site Registry

Each country ("site") has its own spreadsheet, public URL, contact address,
currency and Client ID prefix. The registry is built once from Settings at
startup and never mutated; services receive it through dependencies.

Business Rules:
- Client ID prefix uniquely identifies a site (SM-2025-001 → slow-morocco)
- Prefix is the text before the first "-" of a Client ID
- Unknown site ids are a configuration error (UnknownSiteError → 400)

Called by: dependencies.py, services/*
Depends on: config.py
"""

from dataclasses import dataclass
from types import MappingProxyType

from .config import Settings


class UnknownSiteError(LookupError):
    """Raised when a site id or Client ID prefix is not registered."""

    def __init__(self, site_id: str):
        self.site_id = site_id
        super().__init__(f"Unknown site: {site_id}")


@dataclass(frozen=True)
class Site:
    id: str
    name: str
    sheet_id: str
    site_url: str
    contact_email: str
    currency: str
    client_id_prefix: str


class SiteRegistry:
    """Read-only lookup over the configured sites."""

    def __init__(self, sites: list[Site]):
        self._sites = MappingProxyType({s.id: s for s in sites})

    def get(self, site_id: str | None) -> Site | None:
        if not site_id:
            return None
        return self._sites.get(site_id)

    def require(self, site_id: str | None) -> Site:
        site = self.get(site_id)
        if site is None:
            raise UnknownSiteError(site_id or "")
        return site

    def get_by_prefix(self, prefix: str) -> Site | None:
        for site in self._sites.values():
            if site.client_id_prefix == prefix:
                return site
        return None

    def for_client_id(self, client_id: str) -> Site | None:
        """Route a Client ID to its owning site by prefix."""
        if not client_id:
            return None
        return self.get_by_prefix(client_id.split("-")[0])

    def list_all(self) -> list[Site]:
        return list(self._sites.values())

    def __len__(self) -> int:
        return len(self._sites)


def build_registry(settings: Settings) -> SiteRegistry:
    """Default sites. Add new countries here."""
    return SiteRegistry([
        Site(
            id="slow-morocco",
            name="Slow Morocco",
            sheet_id=settings.slow_morocco_sheet_id,
            site_url="https://slowmorocco.com",
            contact_email="hello@slowmorocco.com",
            currency="EUR",
            client_id_prefix="SM",
        ),
        Site(
            id="slow-namibia",
            name="Slow Namibia",
            sheet_id=settings.slow_namibia_sheet_id,
            site_url="https://slownamibia.com",
            contact_email="hello@slownamibia.com",
            currency="EUR",
            client_id_prefix="SN",
        ),
        Site(
            id="slow-turkiye",
            name="Slow Türkiye",
            sheet_id=settings.slow_turkiye_sheet_id,
            site_url="https://slowturkiye.com",
            contact_email="hello@slowturkiye.com",
            currency="EUR",
            client_id_prefix="ST",
        ),
        Site(
            id="slow-tunisia",
            name="Slow Tunisia",
            sheet_id=settings.slow_tunisia_sheet_id,
            site_url="https://slowtunisia.com",
            contact_email="hello@slowtunisia.com",
            currency="EUR",
            client_id_prefix="STU",
        ),
        Site(
            id="slow-mauritius",
            name="Slow Mauritius",
            sheet_id=settings.slow_mauritius_sheet_id,
            site_url="https://slowmauritius.com",
            contact_email="hello@slowmauritius.com",
            currency="EUR",
            client_id_prefix="SMU",
        ),
    ])
