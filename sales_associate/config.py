"""All settings, loaded from the .env file."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    # Approval links (admin emails)
    approval_secret: str = "change-me"
    approval_token_ttl_hours: int = 168

    # Google service account: either the whole JSON base64-encoded,
    # or the two fields it needs
    google_service_account_base64: str = ""
    google_client_email: str = ""
    google_private_key: str = ""

    # Spreadsheet per site
    slow_morocco_sheet_id: str = ""
    slow_namibia_sheet_id: str = ""
    slow_turkiye_sheet_id: str = ""
    slow_tunisia_sheet_id: str = ""
    slow_mauritius_sheet_id: str = ""

    # Email (Resend)
    resend_api_key: str = ""
    email_from: str = "Slow World <hello@slowmorocco.com>"
    admin_email: str = ""

    # Payments
    paypal_me_handle: str = "slowmorocco"

    # Behavior
    store_timeout_seconds: float = 15

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
