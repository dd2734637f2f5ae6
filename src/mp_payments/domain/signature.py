"""Paystack webhook signature verification (HMAC-SHA512 over the raw body)."""

import hashlib
import hmac


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Lower-case hex HMAC-SHA512 of raw_body keyed by secret."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_signature(raw_body: bytes, supplied_signature: str | None, secret: str) -> bool:
    """Constant-time comparison against the x-paystack-signature header value."""
    if not supplied_signature or not secret:
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected, supplied_signature.strip().lower())
