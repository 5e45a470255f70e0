"""
Payment webhook signature verification.

The signature header looks like `t=1700000000,v1=<hex>,v1=<hex>`. A request is
genuine when one of the v1 values is the HMAC-SHA256 of `{t}.{raw body}` under
the endpoint secret and `t` is recent.
"""

import hashlib
import hmac
import json
import logging
import time
from typing import Optional, Tuple

from listingreel.core.errors import WebhookSignatureError

logger = logging.getLogger(__name__)

SIGNATURE_TOLERANCE = 300  # seconds


def parse_signature_header(header: str) -> Tuple[int, list]:
    timestamp = None
    signatures = []
    for item in (header or "").split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError as e:
                raise WebhookSignatureError("Invalid signature timestamp") from e
        elif key == "v1":
            signatures.append(value)

    if timestamp is None or not signatures:
        raise WebhookSignatureError("Malformed signature header")
    return timestamp, signatures


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    payload: bytes,
    header: str,
    secret: str,
    tolerance: int = SIGNATURE_TOLERANCE,
    now: Optional[float] = None,
) -> dict:
    """Check the signature and return the decoded event."""
    timestamp, signatures = parse_signature_header(header)

    expected = compute_signature(payload, timestamp, secret)
    if not any(hmac.compare_digest(expected, sig) for sig in signatures):
        raise WebhookSignatureError("Signature mismatch")

    age = (time.time() if now is None else now) - timestamp
    if age > tolerance:
        raise WebhookSignatureError(f"Signature timestamp too old ({int(age)}s)")

    try:
        return json.loads(payload)
    except ValueError as e:
        raise WebhookSignatureError("Webhook payload is not valid JSON") from e
