from django.core.validators import MinValueValidator
from django.db import models

from shops.models import Shop


def derive_category(vehicle_type, engine_capacity_cc):
    """Bikes are bucketed by engine size; every other type has no category."""
    if vehicle_type != Vehicle.BIKE or engine_capacity_cc is None:
        return None
    if engine_capacity_cc < 300:
        return Vehicle.UNDER_300CC
    if engine_capacity_cc <= 450:
        return Vehicle.FROM_300_TO_450CC
    return None


class Vehicle(models.Model):
    SCOOTER = 'scooter'
    BIKE = 'bike'
    CAR = 'car'

    UNDER_300CC = 'under_300cc'
    FROM_300_TO_450CC = '300_to_450cc'

    MANUAL = 'manual'
    AUTOMATIC = 'automatic'
    SEMI_AUTOMATIC = 'semi-automatic'

    PETROL = 'petrol'
    DIESEL = 'diesel'
    ELECTRIC = 'electric'
    CNG = 'cng'

    TYPE_CHOICES = [
        (SCOOTER, 'Scooter'),
        (BIKE, 'Bike'),
        (CAR, 'Car'),
    ]

    CATEGORY_CHOICES = [
        (UNDER_300CC, 'Under 300cc'),
        (FROM_300_TO_450CC, '300 to 450cc'),
    ]

    TRANSMISSION_CHOICES = [
        (MANUAL, 'Manual'),
        (AUTOMATIC, 'Automatic'),
        (SEMI_AUTOMATIC, 'Semi-automatic'),
    ]

    FUEL_CHOICES = [
        (PETROL, 'Petrol'),
        (DIESEL, 'Diesel'),
        (ELECTRIC, 'Electric'),
        (CNG, 'CNG'),
    ]

    shop = models.ForeignKey(Shop, on_delete=models.CASCADE, related_name='vehicles')
    name = models.CharField(max_length=100)
    brand = models.CharField(max_length=100)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    engine_capacity_cc = models.PositiveIntegerField()
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, null=True, blank=True, editable=False)
    transmission = models.CharField(max_length=20, choices=TRANSMISSION_CHOICES)
    fuel_type = models.CharField(max_length=10, choices=FUEL_CHOICES)
    daily_rent_inr = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    hourly_rent_inr = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)])
    images = models.JSONField(default=list, blank=True)
    seating_capacity = models.PositiveIntegerField()
    odo_reading_km = models.FloatField(default=0)
    total_distance_traveled_km = models.FloatField(default=0)
    available = models.BooleanField(default=True)
    features = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.brand} {self.name} ({self.type})"

    def save(self, *args, **kwargs):
        self.category = derive_category(self.type, self.engine_capacity_cc)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'engine_capacity_cc' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'category'}
        super().save(*args, **kwargs)

    @property
    def supports_hourly(self):
        return self.hourly_rent_inr is not None and self.hourly_rent_inr > 0
