from decimal import Decimal, ROUND_HALF_UP

from django.contrib.auth import get_user_model
from django.db import models

from bookings.models import Booking

User = get_user_model()


class Payment(models.Model):
    """
    A payment attempt for a booking.
    A booking may collect several attempts (a failed one can be retried);
    the latest successful one is authoritative.
    """
    RAZORPAY = 'razorpay'
    MOCK = 'mock'
    CASH = 'cash'

    METHOD_CHOICES = [
        (RAZORPAY, 'Razorpay'),
        (MOCK, 'Mock'),
        (CASH, 'Cash'),
    ]

    PENDING = 'pending'
    SUCCESS = 'success'
    FAILED = 'failed'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (SUCCESS, 'Success'),
        (FAILED, 'Failed'),
    ]

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='payments')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2, help_text="Copied from the booking total at creation.")
    currency = models.CharField(max_length=10, default='INR')
    method = models.CharField(max_length=20, choices=METHOD_CHOICES, default=MOCK)
    gateway_order_id = models.CharField(max_length=255, null=True, blank=True, db_index=True, help_text="Order ID issued by the gateway.")
    transaction_id = models.CharField(max_length=255, null=True, blank=True, help_text="Gateway order ID until verified, then the gateway payment ID.")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Payment"
        verbose_name_plural = "Payments"

    def __str__(self):
        return f"Payment {self.pk} for Booking #{self.booking_id} - {self.status}"

    @property
    def amount_minor_units(self):
        return int((self.amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
