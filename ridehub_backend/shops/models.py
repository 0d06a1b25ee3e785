from django.contrib.auth import get_user_model
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models

User = get_user_model()


class Shop(models.Model):
    owner = models.OneToOneField(User, on_delete=models.CASCADE, related_name='shop')
    name = models.CharField(max_length=100)
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100, db_index=True)
    pincode = models.CharField(
        max_length=6,
        validators=[RegexValidator(r'^[0-9]{6}$', 'Please add a valid 6-digit pincode')],
    )
    phone = models.CharField(
        max_length=10,
        validators=[RegexValidator(r'^[0-9]{10}$', 'Please add a valid 10-digit phone number')],
    )
    # stored as a (longitude, latitude) point
    longitude = models.DecimalField(
        max_digits=9, decimal_places=6,
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
    )
    latitude = models.DecimalField(
        max_digits=9, decimal_places=6,
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['longitude', 'latitude'], name='shop_location_idx')]

    def __str__(self):
        return f"{self.name} ({self.city})"

    @property
    def location(self):
        return {'type': 'Point', 'coordinates': [float(self.longitude), float(self.latitude)]}

    def is_owned_by(self, principal):
        return self.owner_id == principal.user_id
