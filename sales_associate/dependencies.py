"""
dependencies.py — Shared FastAPI Dependencies

Builds the process-wide collaborators once (site registry, record store,
ID issuer, email notifier) and hands them to routers. Tests swap any of
them through app.dependency_overrides.

Business Rules:
- The site registry is built from Settings at first use and never mutated
- One ClientIdIssuer per process so per-site ID locks are shared
- Services are cheap wrappers, built per request from the singletons

Called by: all routers
Depends on: config, sites, services/*, utils/sheets_client
"""

from functools import lru_cache

from fastapi import Depends

from .config import get_settings
from .services.client_ids import ClientIdIssuer
from .services.notifications import EmailNotifier
from .services.pipeline import StatusPipeline
from .services.quote_service import QuoteService
from .services.record_store import RecordStore
from .sites import SiteRegistry, build_registry
from .utils.sheets_client import ServiceAccountAuth, SheetsClient

_issuers: dict[int, ClientIdIssuer] = {}


@lru_cache
def get_registry() -> SiteRegistry:
    return build_registry(get_settings())


@lru_cache
def _default_store() -> RecordStore:
    settings = get_settings()
    backend = SheetsClient(
        ServiceAccountAuth.from_settings(settings),
        timeout=settings.store_timeout_seconds,
    )
    return RecordStore(get_registry(), backend)


def get_store() -> RecordStore:
    return _default_store()


def get_issuer(store: RecordStore = Depends(get_store)) -> ClientIdIssuer:
    """Issuer bound to the current store; reused so its locks persist."""
    issuer = _issuers.get(id(store))
    if issuer is None or issuer.store is not store:
        issuer = _issuers[id(store)] = ClientIdIssuer(store)
    return issuer


@lru_cache
def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def get_pipeline(
    store: RecordStore = Depends(get_store),
    registry: SiteRegistry = Depends(get_registry),
    notifier: EmailNotifier = Depends(get_notifier),
    issuer: ClientIdIssuer = Depends(get_issuer),
) -> StatusPipeline:
    return StatusPipeline(store, registry, notifier, issuer)


def get_quote_service(
    store: RecordStore = Depends(get_store),
    registry: SiteRegistry = Depends(get_registry),
    issuer: ClientIdIssuer = Depends(get_issuer),
) -> QuoteService:
    return QuoteService(store, registry, issuer)
