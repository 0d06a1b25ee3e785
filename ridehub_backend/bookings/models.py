from django.contrib.auth import get_user_model
from django.db import models

from shops.models import Shop
from vehicles.models import Vehicle

User = get_user_model()


class Booking(models.Model):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    ONGOING = 'ongoing'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CONFIRMED, 'Confirmed'),
        (ONGOING, 'Ongoing'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    ]

    # Only these block a vehicle for other customers; pending requests do not.
    BLOCKING_STATUSES = (CONFIRMED, ONGOING)
    CANCELLABLE_STATUSES = (PENDING, CONFIRMED)

    TRANSITIONS = {
        PENDING: (CONFIRMED, CANCELLED),
        CONFIRMED: (ONGOING, CANCELLED),
        ONGOING: (COMPLETED,),
        COMPLETED: (),
        CANCELLED: (),
    }

    HOURLY = 'hourly'
    DAILY = 'daily'

    RENTAL_TYPE_CHOICES = [
        (HOURLY, 'Hourly'),
        (DAILY, 'Daily'),
    ]

    PAYMENT_PENDING = 'pending'
    PAYMENT_PAID = 'paid'
    PAYMENT_FAILED = 'failed'
    PAYMENT_REFUNDED = 'refunded'

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_FAILED, 'Failed'),
        (PAYMENT_REFUNDED, 'Refunded'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='bookings')
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='bookings')
    # snapshot of vehicle.shop taken at creation, never re-synced
    shop = models.ForeignKey(Shop, on_delete=models.CASCADE, related_name='bookings')
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    rental_type = models.CharField(max_length=10, choices=RENTAL_TYPE_CHOICES, default=DAILY)
    total_hours = models.PositiveIntegerField(default=0)
    total_days = models.PositiveIntegerField()
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    start_odo_km = models.FloatField(null=True, blank=True)
    end_odo_km = models.FloatField(null=True, blank=True)
    distance_travelled_km = models.FloatField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    customer_notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['vehicle', 'status'], name='booking_vehicle_status_idx'),
            models.Index(fields=['shop', 'status'], name='booking_shop_status_idx'),
        ]

    def __str__(self):
        return f"Booking #{self.id} - {self.vehicle_id} - {self.user_id} - {self.status}"

    def can_transition_to(self, new_status):
        return new_status in self.TRANSITIONS.get(self.status, ())

    @property
    def is_paid(self):
        return self.payment_status == self.PAYMENT_PAID
