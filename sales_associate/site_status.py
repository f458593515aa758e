"""Startup visibility — log which sites and integrations are configured."""

from loguru import logger

from .config import Settings
from .sites import SiteRegistry


def log_site_status(registry: SiteRegistry, settings: Settings) -> dict[str, bool]:
    """Log enabled/disabled sites and integrations.

    Returns dict mapping name to enabled (True/False).
    """
    status = {site.name: bool(site.sheet_id) for site in registry.list_all()}
    status["Google service account"] = bool(
        settings.google_service_account_base64
        or (settings.google_client_email and settings.google_private_key)
    )
    status["Resend email"] = bool(settings.resend_api_key)

    enabled = {k for k, v in status.items() if v}
    disabled = {k for k, v in status.items() if not v}

    if enabled:
        logger.info("Configured: {}", ", ".join(sorted(enabled)))
    if disabled:
        logger.warning("Not configured (missing settings): {}", ", ".join(sorted(disabled)))
    if settings.approval_secret == "change-me":
        logger.warning("APPROVAL_SECRET is the default; approval links are forgeable")

    return status
