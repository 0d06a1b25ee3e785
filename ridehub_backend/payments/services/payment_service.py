import logging

from django.db import transaction

from bookings.models import Booking
from bookings.services import settle_booking
from ridehub_backend.exceptions import (
    AlreadyPaid, InvalidRequest, InvalidSignature, InvalidState, NotFound, Unauthorized,
)
from payments.models import Payment
from . import razorpay
from .processors import get_payment_processor

logger = logging.getLogger(__name__)


class PaymentService:
    """Payment creation, gateway verification and lookups."""

    @staticmethod
    def _lock_payable_booking(booking_id, principal):
        booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
        if booking is None:
            raise NotFound('Booking not found')
        if booking.user_id != principal.user_id:
            raise Unauthorized('Not authorized to pay for this booking')
        if booking.is_paid:
            raise AlreadyPaid('Booking is already paid')
        if booking.status == Booking.CANCELLED:
            raise InvalidState(f'Cannot pay for booking with status: {booking.status}')
        return booking

    @staticmethod
    def create_payment(booking_id, principal, processor=None):
        processor = processor or get_payment_processor()
        with transaction.atomic():
            booking = PaymentService._lock_payable_booking(booking_id, principal)
            if not processor.calls_gateway:
                return processor.create_order(booking, principal)
        # the gateway round trip runs after the booking lock is released;
        # settlement re-checks the booking state on verify
        return processor.create_order(booking, principal)

    @staticmethod
    def verify_payment(order_id, payment_id, signature, booking_id=None, processor=None):
        """
        Check the gateway signature and settle the matching payment and booking.
        Verifying the same payment twice re-applies the same updates.
        """
        if not order_id or not payment_id or not signature:
            raise InvalidRequest('Missing payment verification details')
        if not razorpay.verify_signature(order_id, payment_id, signature):
            logger.warning("Rejected payment verification for order %s: signature mismatch", order_id)
            raise InvalidSignature('Invalid payment signature')

        processor = processor or get_payment_processor('razorpay')
        with transaction.atomic():
            payment = Payment.objects.select_for_update().filter(gateway_order_id=order_id).first()
            if payment is not None:
                booking = Booking.objects.select_for_update().get(pk=payment.booking_id)
                payment.booking = booking
                PaymentService._ensure_settleable(booking, order_id)
                processor.settle(payment, payment_id)
            else:
                booking = Booking.objects.select_for_update().filter(pk=booking_id).first() if booking_id else None
                if booking is None:
                    raise NotFound('Payment not found for this order')
                if booking.payments.filter(gateway_order_id__gt='').exists():
                    logger.warning("Order %s does not match the stored orders of booking %s", order_id, booking.pk)
                    raise InvalidRequest('Payment order does not belong to this booking')
                PaymentService._ensure_settleable(booking, order_id)
                settle_booking(booking)
        logger.info("Payment verified for order %s (booking %s)", order_id, booking.pk)
        return payment, booking

    @staticmethod
    def _ensure_settleable(booking, order_id):
        if booking.status == Booking.CANCELLED:
            logger.warning(
                "Captured payment for order %s on cancelled booking %s needs a refund", order_id, booking.pk,
            )
            raise InvalidState(f'Cannot settle payment for booking with status: {booking.status}')

    @staticmethod
    def get_payment(payment_id, principal):
        payment = Payment.objects.select_related('booking', 'user').filter(pk=payment_id).first()
        if payment is None:
            raise NotFound('Payment not found')
        if payment.user_id != principal.user_id and not principal.is_admin:
            raise Unauthorized('Not authorized to view this payment')
        return payment

    @staticmethod
    def get_user_payments(principal):
        return Payment.objects.filter(user_id=principal.user_id).select_related('booking__vehicle')

    @staticmethod
    def get_booking_payment(booking_id, principal):
        booking = Booking.objects.select_related('shop').filter(pk=booking_id).first()
        if booking is None:
            raise NotFound('Booking not found')
        if not (booking.user_id == principal.user_id or principal.is_admin or booking.shop.owner_id == principal.user_id):
            raise Unauthorized('Not authorized to view payments for this booking')
        payment = Payment.objects.filter(booking=booking).select_related('user').first()
        if payment is None:
            raise NotFound('Payment not found for this booking')
        return payment
