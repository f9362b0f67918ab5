"""
Razorpay gateway client.

Orders are created over the REST API with basic auth (key id / key secret).
Checkout signatures and webhook signatures are hex HMAC-SHA256 digests.
"""

import logging
from typing import Optional

import httpx

from ...config import (
    RAZORPAY_API_URL,
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
    RAZORPAY_WEBHOOK_SECRET,
)
from ...security_utils import compute_hmac_sha256, constant_time_compare

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised when the payment gateway cannot create an order"""

    pass


def to_paise(amount: float) -> int:
    return int(round(amount * 100))


async def create_order(amount: float, receipt: str, currency: str = "INR", notes: Optional[dict] = None) -> dict:
    """
    Create a Razorpay order.

    Returns:
        The gateway's order object ({"id": "order_...", "amount": ..., ...})

    Raises:
        GatewayError: If the gateway is not configured, unreachable or rejects the order
    """
    if not RAZORPAY_KEY_ID or not RAZORPAY_KEY_SECRET:
        raise GatewayError("Payment gateway is not configured")

    payload = {
        "amount": to_paise(amount),
        "currency": currency,
        "receipt": receipt,
        "notes": notes or {},
    }
    try:
        async with httpx.AsyncClient(timeout=30.0) as http_client:
            response = await http_client.post(
                f"{RAZORPAY_API_URL}/orders",
                auth=(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET),
                json=payload,
            )
    except httpx.HTTPError as e:
        logger.error(f"❌ Razorpay order request failed: {e}")
        raise GatewayError("Payment gateway unreachable") from e

    if response.status_code not in (200, 201):
        logger.error(f"❌ Razorpay rejected order {receipt}: {response.status_code} {response.text}")
        raise GatewayError("Payment gateway rejected the order")

    order = response.json()
    logger.info(f"✅ Razorpay order {order.get('id')} created for {receipt}")
    return order


def verify_payment_signature(order_id: str, payment_id: str, signature: Optional[str]) -> bool:
    """Checkout signature: HMAC-SHA256("{order_id}|{payment_id}") with the key secret"""
    if not RAZORPAY_KEY_SECRET or not signature:
        return False
    expected = compute_hmac_sha256(RAZORPAY_KEY_SECRET, f"{order_id}|{payment_id}".encode("utf-8"))
    return constant_time_compare(expected, signature)


def verify_webhook_signature(body: bytes, signature: Optional[str]) -> bool:
    """X-Razorpay-Signature: HMAC-SHA256 of the raw request body with the webhook secret"""
    if not RAZORPAY_WEBHOOK_SECRET or not signature:
        logger.warning("⚠️ Webhook rejected: missing secret or signature header")
        return False
    expected = compute_hmac_sha256(RAZORPAY_WEBHOOK_SECRET, body)
    return constant_time_compare(expected, signature)
