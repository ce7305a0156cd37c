"""Razorpay order minting and checkout signature verification."""
from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class GatewayNotConfiguredError(RuntimeError):
    """Raised when Razorpay credentials are missing."""


class GatewayError(RuntimeError):
    """Raised when the Razorpay API rejects or fails an order request."""


@dataclass
class GatewayCredentials:
    key_id: str
    key_secret: str


def get_credentials() -> GatewayCredentials:
    key_id = (settings.razorpay_key_id or "").strip()
    key_secret = (settings.razorpay_key_secret or "").strip()
    if not key_id or not key_secret:
        logger.warning("Razorpay not configured; RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET missing")
        raise GatewayNotConfiguredError("Payment gateway is not configured")
    return GatewayCredentials(key_id=key_id, key_secret=key_secret)


def to_minor_units(amount: int) -> int:
    """Rupees -> paise."""
    return int(amount) * 100


def create_gateway_order(amount_minor: int, currency: str, receipt: str, notes: Optional[dict] = None) -> str:
    """Create an order through the Razorpay Orders API and return its id."""
    creds = get_credentials()
    payload = {"amount": amount_minor, "currency": currency, "receipt": receipt[:40], "notes": notes or {}}
    try:
        response = httpx.post(
            f"{settings.razorpay_api_base.rstrip('/')}/orders",
            json=payload,
            auth=(creds.key_id, creds.key_secret),
            timeout=settings.http_timeout_seconds,
        )
    except httpx.HTTPError as exc:
        raise GatewayError(f"Razorpay request failed: {exc}") from exc

    if response.status_code >= 400:
        logger.error("Razorpay order creation failed: HTTP %s %s", response.status_code, response.text[:200])
        raise GatewayError(f"Razorpay returned HTTP {response.status_code}")

    order_id = response.json().get("id")
    if not order_id:
        raise GatewayError("Razorpay response did not include an order id")
    return str(order_id)


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str) -> bool:
    """Check a checkout proof in constant time."""
    if not order_id or not payment_id or not signature:
        return False
    creds = get_credentials()
    expected = compute_signature(order_id, payment_id, creds.key_secret)
    return hmac.compare_digest(expected, signature)
