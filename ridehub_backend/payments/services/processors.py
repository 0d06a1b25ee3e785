import logging
import time
from functools import lru_cache

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction

from bookings.services import settle_booking
from payments.models import Payment
from . import razorpay

logger = logging.getLogger(__name__)


class PaymentResult:
    def __init__(self, payment, message, order=None):
        self.payment = payment
        self.message = message
        self.order = order

    @property
    def settled(self):
        return self.payment.status == Payment.SUCCESS


class PaymentProcessor:
    """
    Strategy for turning a booking into a payment.
    `create_order` starts a payment for a booking; `settle` marks a payment
    successful and the booking paid.
    """
    method = None
    # processors that talk to a remote gateway must not run under the booking row lock
    calls_gateway = False

    def create_order(self, booking, principal):
        raise NotImplementedError

    @transaction.atomic
    def settle(self, payment, transaction_id):
        payment.status = Payment.SUCCESS
        payment.transaction_id = transaction_id
        payment.save(update_fields=['status', 'transaction_id', 'updated_at'])
        settle_booking(payment.booking)
        logger.info("Payment %s settled for booking %s via %s", payment.pk, payment.booking_id, payment.method)
        return payment


class MockPaymentProcessor(PaymentProcessor):
    """Settles immediately without talking to any gateway."""
    method = Payment.MOCK

    def create_order(self, booking, principal):
        payment = Payment.objects.create(
            booking=booking,
            user_id=principal.user_id,
            amount=booking.total_amount,
            currency=settings.PAYMENT_CURRENCY,
            method=self.method,
            status=Payment.PENDING,
        )
        self.settle(payment, f"MOCK_{int(time.time() * 1000)}")
        return PaymentResult(payment, 'Mock payment successful')


class RazorpayPaymentProcessor(PaymentProcessor):
    """Creates a gateway order; settlement happens later through signature verification."""
    method = Payment.RAZORPAY
    calls_gateway = True

    def create_order(self, booking, principal):
        payment = Payment(
            booking=booking,
            user_id=principal.user_id,
            amount=booking.total_amount,
            currency=settings.PAYMENT_CURRENCY,
            method=self.method,
            status=Payment.PENDING,
        )
        order = razorpay.create_order(
            payment.amount_minor_units,
            payment.currency,
            receipt=f"receipt_{booking.pk}",
            notes={'bookingId': str(booking.pk), 'userId': str(principal.user_id)},
        )
        payment.gateway_order_id = order['id']
        payment.transaction_id = order['id']
        payment.save()
        logger.info("Razorpay order %s created for booking %s", order['id'], booking.pk)
        return PaymentResult(payment, 'Payment order created', order={
            'orderId': order['id'],
            'amount': order.get('amount', payment.amount_minor_units),
            'currency': order.get('currency', payment.currency),
            'keyId': settings.RAZORPAY_KEY_ID,
        })


PROCESSORS = {
    'mock': MockPaymentProcessor,
    'razorpay': RazorpayPaymentProcessor,
}


@lru_cache(maxsize=None)
def get_payment_processor(mode=None):
    mode = mode or settings.PAYMENT_MODE
    try:
        return PROCESSORS[mode]()
    except KeyError:
        raise ImproperlyConfigured(f"Unknown PAYMENT_MODE: {mode}")
