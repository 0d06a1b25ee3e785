from datetime import datetime, timezone
from decimal import Decimal

from django.contrib.auth import get_user_model

from shops.models import Shop
from vehicles.models import Vehicle

User = get_user_model()

_phone_counter = [9000000000]


def make_user(email, role='customer', password='secret123', **extra):
    _phone_counter[0] += 1
    return User.objects.create_user(
        email=email,
        phone_number=extra.pop('phone_number', str(_phone_counter[0])),
        first_name=extra.pop('first_name', email.split('@')[0].title()),
        last_name=extra.pop('last_name', 'Test'),
        password=password,
        role=role,
    )


def make_admin(email='admin@ridehub.com'):
    user = make_user(email, role=User.ADMIN)
    user.is_staff = True
    user.save()
    return user


def make_shop(owner, **extra):
    data = {
        'name': f"{owner.first_name} Rentals",
        'address': '12 MG Road',
        'city': 'Bangalore',
        'pincode': '560001',
        'phone': '9876500001',
        'longitude': Decimal('77.594566'),
        'latitude': Decimal('12.971599'),
    }
    data.update(extra)
    return Shop.objects.create(owner=owner, **data)


def make_vehicle(shop, **extra):
    data = {
        'name': 'Classic 350',
        'brand': 'Royal Enfield',
        'type': Vehicle.BIKE,
        'engine_capacity_cc': 349,
        'transmission': Vehicle.MANUAL,
        'fuel_type': Vehicle.PETROL,
        'daily_rent_inr': Decimal('500'),
        'seating_capacity': 2,
    }
    data.update(extra)
    return Vehicle.objects.create(shop=shop, **data)


def dt(value):
    """Parse 'YYYY-MM-DDTHH:MM' as an aware UTC datetime."""
    return datetime.strptime(value, '%Y-%m-%dT%H:%M').replace(tzinfo=timezone.utc)
