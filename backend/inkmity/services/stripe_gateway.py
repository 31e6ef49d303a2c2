"""Thin Stripe REST client.

Stripe takes form-encoded bodies with bracketed keys
(``line_items[0][price_data][currency]``); responses are JSON.
"""

import hashlib
import hmac
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import settings
from ..utils.json_utils import loads

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Stripe rejected a request or could not be reached."""


class WebhookSignatureError(Exception):
    pass


def _headers(idempotency_key: Optional[str] = None) -> Dict[str, str]:
    headers = {"Authorization": f"Bearer {settings.STRIPE_SECRET_KEY}"}
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key
    return headers


def _post(path: str, data: Dict[str, Any], idempotency_key: Optional[str] = None) -> Dict[str, Any]:
    if not settings.STRIPE_SECRET_KEY:
        raise PaymentGatewayError("Stripe is not configured")
    url = f"{settings.STRIPE_API_BASE.rstrip('/')}/{path.lstrip('/')}"
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(url, data=data, headers=_headers(idempotency_key))
            r.raise_for_status()
            return r.json()
    except httpx.HTTPStatusError as exc:
        logger.error("Stripe %s failed with %s: %s", path, exc.response.status_code, exc.response.text)
        raise PaymentGatewayError(f"Stripe returned {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        logger.error("Stripe %s unreachable: %s", path, exc)
        raise PaymentGatewayError("Stripe unreachable") from exc


def create_checkout_session(
    *,
    amount_cents: int,
    currency: str,
    product_name: str,
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, Any],
    customer_email: Optional[str] = None,
    expires_at: Optional[int] = None,
    idempotency_key: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a hosted Checkout session; returns ``{"id", "url", ...}``."""
    data: Dict[str, Any] = {
        "mode": "payment",
        "success_url": success_url,
        "cancel_url": cancel_url,
        "line_items[0][quantity]": 1,
        "line_items[0][price_data][currency]": currency,
        "line_items[0][price_data][unit_amount]": int(amount_cents),
        "line_items[0][price_data][product_data][name]": product_name,
    }
    for key, value in metadata.items():
        data[f"metadata[{key}]"] = str(value)
        data[f"payment_intent_data[metadata][{key}]"] = str(value)
    if customer_email:
        data["customer_email"] = customer_email
    if expires_at:
        data["expires_at"] = int(expires_at)
    session = _post("checkout/sessions", data, idempotency_key)
    if not session.get("id") or not session.get("url"):
        raise PaymentGatewayError("Invalid Stripe checkout response")
    return session


def create_refund(payment_intent_id: str, idempotency_key: Optional[str] = None) -> Dict[str, Any]:
    refund = _post("refunds", {"payment_intent": payment_intent_id}, idempotency_key)
    if not refund.get("id"):
        raise PaymentGatewayError("Invalid Stripe refund response")
    return refund


def _parse_signature_header(header: str) -> tuple[Optional[int], List[str]]:
    timestamp: Optional[int] = None
    signatures: List[str] = []
    for part in (header or "").split(","):
        key, _, value = part.strip().partition("=")
        if key == "t" and value.isdigit():
            timestamp = int(value)
        elif key == "v1" and value:
            signatures.append(value)
    return timestamp, signatures


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def construct_event(
    payload: bytes,
    signature_header: Optional[str],
    secret: Optional[str] = None,
    tolerance: Optional[int] = None,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    """Verify a ``Stripe-Signature`` header and return the decoded event."""
    secret = secret if secret is not None else settings.STRIPE_WEBHOOK_SECRET
    tolerance = tolerance if tolerance is not None else settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS
    if not secret:
        raise WebhookSignatureError("Webhook secret not configured")
    timestamp, signatures = _parse_signature_header(signature_header or "")
    if timestamp is None or not signatures:
        raise WebhookSignatureError("Malformed Stripe-Signature header")
    expected = compute_signature(payload, timestamp, secret)
    if not any(hmac.compare_digest(expected, sig) for sig in signatures):
        raise WebhookSignatureError("Signature mismatch")
    current = time.time() if now is None else now
    if abs(current - timestamp) > tolerance:
        raise WebhookSignatureError("Timestamp outside tolerance")
    try:
        return loads(payload)
    except ValueError as exc:
        raise WebhookSignatureError("Payload is not JSON") from exc
