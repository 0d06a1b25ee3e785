import hashlib
import hmac
import logging

import requests
from django.conf import settings

from ridehub_backend.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)


def create_order(amount_minor_units, currency, receipt, notes=None):
    """
    Create a Razorpay order for `amount_minor_units` (paise for INR).
    Returns the order JSON as issued by the gateway (id, amount, currency, ...).
    """
    try:
        response = requests.post(
            f"{settings.RAZORPAY_BASE_URL}/orders",
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET),
            json={
                "amount": amount_minor_units,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
            timeout=settings.RAZORPAY_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        logger.error("Error creating Razorpay order for %s: %s", receipt, e)
        if getattr(e, 'response', None) is not None:
            logger.error("Razorpay error response: %s", e.response.text)
        raise PaymentGatewayError() from e


def expected_signature(order_id, payment_id, secret=None):
    secret = secret if secret is not None else settings.RAZORPAY_KEY_SECRET
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(order_id, payment_id, signature, secret=None):
    return hmac.compare_digest(expected_signature(order_id, payment_id, secret), str(signature))
