"""웹훅 서명 검증(Webhook signature verification)."""
from __future__ import annotations

import hashlib
import hmac
from typing import Optional

SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    """``sha256=<hex>`` 서명 계산(HMAC-SHA256 over the raw body)."""

    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(secret: str, body: bytes, header: Optional[str]) -> bool:
    """서명 검증(Constant-time comparison against the supplied header).

    The body must be the exact bytes received; re-serialized JSON would not
    match.
    """

    if not header:
        return False
    expected = compute_signature(secret, body).encode("utf-8")
    supplied = header.encode("utf-8")
    if len(expected) != len(supplied):
        return False
    return hmac.compare_digest(expected, supplied)
