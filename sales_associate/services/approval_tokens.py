"""
approval_tokens.py — Signed, expiring capability tokens for approval links

An admin approves or rejects a proposal by clicking a link in an email.
The link carries the Client ID and a token:

    <expiry epoch seconds>.<first 32 hex chars of HMAC-SHA256(secret, "client_id|expiry")>

Business Rules:
- Token is bound to one Client ID and expires (APPROVAL_TOKEN_TTL_HOURS)
- Comparison is constant-time (hmac.compare_digest)
- Malformed, expired or foreign tokens are all simply invalid

Called by: services/pipeline.py
Depends on: config.py
"""

import hashlib
import hmac
import re
import time
from urllib.parse import urlencode

from ..config import settings

SIGNATURE_LENGTH = 32
_EXPIRY = re.compile(r"[0-9]{1,12}")


def _signature(client_id: str, expires: int, secret: str) -> str:
    message = f"{client_id}|{expires}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()[:SIGNATURE_LENGTH]


def make_approval_token(client_id: str, ttl_hours: int | None = None,
                        now: float | None = None, secret: str | None = None) -> str:
    ttl_hours = settings.approval_token_ttl_hours if ttl_hours is None else ttl_hours
    now = time.time() if now is None else now
    expires = int(now + ttl_hours * 3600)
    return f"{expires}.{_signature(client_id, expires, secret or settings.approval_secret)}"


def verify_approval_token(client_id: str, token: str | None,
                          now: float | None = None, secret: str | None = None) -> bool:
    if not client_id or not token or "." not in token:
        return False
    expires_text, signature = token.split(".", 1)
    if not _EXPIRY.fullmatch(expires_text):
        return False
    expires = int(expires_text)
    now = time.time() if now is None else now
    if now > expires:
        return False
    expected = _signature(client_id, expires, secret or settings.approval_secret)
    return hmac.compare_digest(expected.encode(), signature.encode())


def approval_link(client_id: str, action: str, token: str | None = None) -> str:
    query = {
        "action": action,
        "clientId": client_id,
        "token": token or make_approval_token(client_id),
    }
    return f"{settings.app_url}/api/webhooks/approval?{urlencode(query)}"


def approval_links(client_id: str) -> dict[str, str]:
    """Approve / reject / resend URLs sharing one token."""
    token = make_approval_token(client_id)
    return {
        action: approval_link(client_id, action, token)
        for action in ("approve", "reject", "resend")
    }
