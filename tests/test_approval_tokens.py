"""
test_approval_tokens.py — Tests for signed approval-link tokens

Called by: pytest
Depends on: sales_associate.services.approval_tokens
"""

from urllib.parse import parse_qs, urlparse

from sales_associate.services.approval_tokens import (
    approval_link,
    approval_links,
    make_approval_token,
    verify_approval_token,
)

NOW = 1_750_000_000


def test_token_shape():
    token = make_approval_token("SM-2025-001", ttl_hours=1, now=NOW, secret="s")
    expires, signature = token.split(".")
    assert int(expires) == NOW + 3600
    assert len(signature) == 32


def test_valid_token_verifies():
    token = make_approval_token("SM-2025-001", ttl_hours=1, now=NOW, secret="s")
    assert verify_approval_token("SM-2025-001", token, now=NOW + 10, secret="s")


def test_token_bound_to_client_id():
    token = make_approval_token("SM-2025-001", ttl_hours=1, now=NOW, secret="s")
    assert not verify_approval_token("SM-2025-002", token, now=NOW, secret="s")


def test_wrong_secret_rejected():
    token = make_approval_token("SM-2025-001", ttl_hours=1, now=NOW, secret="s")
    assert not verify_approval_token("SM-2025-001", token, now=NOW, secret="other")


def test_expired_token_rejected():
    token = make_approval_token("SM-2025-001", ttl_hours=1, now=NOW, secret="s")
    assert not verify_approval_token("SM-2025-001", token, now=NOW + 3601, secret="s")


def test_tampered_expiry_rejected():
    token = make_approval_token("SM-2025-001", ttl_hours=1, now=NOW, secret="s")
    _, signature = token.split(".")
    forged = f"{NOW + 999_999}.{signature}"
    assert not verify_approval_token("SM-2025-001", forged, now=NOW, secret="s")


def test_malformed_tokens_rejected():
    for token in (None, "", "abc", "notanumber.deadbeef", "."):
        assert not verify_approval_token("SM-2025-001", token, now=NOW, secret="s")


def test_links_share_one_token():
    links = approval_links("SM-2025-001")
    assert set(links) == {"approve", "reject", "resend"}
    queries = [parse_qs(urlparse(url).query) for url in links.values()]
    assert {q["action"][0] for q in queries} == {"approve", "reject", "resend"}
    assert {q["clientId"][0] for q in queries} == {"SM-2025-001"}
    assert len({q["token"][0] for q in queries}) == 1
    assert verify_approval_token("SM-2025-001", queries[0]["token"][0])


def test_link_path():
    url = approval_link("SN-2025-004", "approve", token="123.abc")
    parsed = urlparse(url)
    assert parsed.path == "/api/webhooks/approval"
    assert parse_qs(parsed.query)["token"] == ["123.abc"]


def test_non_ascii_digit_expiry_rejected():
    assert not verify_approval_token("SM-2025-001", "².abcdef", now=NOW, secret="s")


def test_oversized_expiry_rejected():
    assert not verify_approval_token("SM-2025-001", "9" * 5000 + ".abcdef", now=NOW, secret="s")


def test_non_ascii_signature_rejected():
    token = make_approval_token("SM-2025-001", ttl_hours=1, now=NOW, secret="s")
    expires, _ = token.split(".")
    assert not verify_approval_token("SM-2025-001", f"{expires}.é", now=NOW, secret="s")
