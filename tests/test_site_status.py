"""Tests for startup site/integration status logging."""

from loguru import logger

from sales_associate.config import Settings
from sales_associate.site_status import log_site_status
from sales_associate.sites import Site, SiteRegistry


def _capture():
    messages = []
    handler_id = logger.add(lambda m: messages.append(str(m)), format="{level} {message}")
    return messages, handler_id


def test_reports_sites_and_integrations(registry):
    settings = Settings(resend_api_key="re_x", google_client_email="", google_private_key="",
                        google_service_account_base64="", approval_secret="s3cret")
    status = log_site_status(registry, settings)
    assert status["Slow Morocco"] is True
    assert status["Resend email"] is True
    assert status["Google service account"] is False


def test_site_without_sheet_is_disabled(registry):
    reg = SiteRegistry(registry.list_all() + [
        Site("slow-turkiye", "Slow Türkiye", "", "https://slowturkiye.com",
             "hello@slowturkiye.com", "EUR", "ST"),
    ])
    status = log_site_status(reg, Settings(approval_secret="s3cret"))
    assert status["Slow Türkiye"] is False


def test_default_secret_warns(registry):
    messages, handler_id = _capture()
    try:
        log_site_status(registry, Settings(approval_secret="change-me"))
    finally:
        logger.remove(handler_id)
    assert any(m.startswith("WARNING") and "APPROVAL_SECRET" in m for m in messages)
