"""HMAC-SHA256 request signatures for inbound commerce webhooks."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac


def _as_bytes(body: bytes | str) -> bytes:
    return body.encode("utf-8") if isinstance(body, str) else body


def _digest(body: bytes | str, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), _as_bytes(body), hashlib.sha256).digest()


def compute_webhook_signature(body: bytes | str, secret: str) -> str:
    """Return the base64 HMAC-SHA256 of the raw request body."""

    return base64.b64encode(_digest(body, secret)).decode("ascii")


def verify_webhook_signature(body: bytes | str, signature: str | None, secret: str | None) -> bool:
    """Check a signature header against the exact bytes that were received.

    Without a secret every request verifies; callers decide whether that is
    acceptable. Missing or non-base64 headers never raise, they are invalid.
    """

    if not secret:
        return True
    if not signature:
        return False

    try:
        provided = base64.b64decode(signature.strip(), validate=True)
    except (binascii.Error, ValueError):
        return False

    return hmac.compare_digest(provided, _digest(body, secret))


__all__ = ["compute_webhook_signature", "verify_webhook_signature"]
