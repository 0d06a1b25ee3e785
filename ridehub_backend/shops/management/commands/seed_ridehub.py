from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from bookings.models import Booking
from payments.models import Payment
from shops.models import Shop
from vehicles.models import Vehicle

User = get_user_model()

USERS = [
    {'email': 'admin@ridehub.com', 'first_name': 'Admin', 'last_name': 'User', 'phone_number': '9876543210', 'password': 'admin123', 'role': User.ADMIN},
    {'email': 'rajesh@shop.com', 'first_name': 'Rajesh', 'last_name': 'Kumar', 'phone_number': '9876543211', 'password': 'shop123', 'role': User.SHOP_OWNER},
    {'email': 'priya@shop.com', 'first_name': 'Priya', 'last_name': 'Sharma', 'phone_number': '9876543212', 'password': 'shop123', 'role': User.SHOP_OWNER},
    {'email': 'john@customer.com', 'first_name': 'John', 'last_name': 'Customer', 'phone_number': '9876543214', 'password': 'customer123', 'role': User.CUSTOMER},
    {'email': 'sarah@customer.com', 'first_name': 'Sarah', 'last_name': 'Wilson', 'phone_number': '9876543215', 'password': 'customer123', 'role': User.CUSTOMER},
]

SHOPS = {
    'rajesh@shop.com': {
        'name': 'Bangalore Bike Rentals', 'address': '12 MG Road', 'city': 'Bangalore', 'pincode': '560001',
        'phone': '9876500001', 'longitude': Decimal('77.594566'), 'latitude': Decimal('12.971599'),
    },
    'priya@shop.com': {
        'name': 'Goa Scooter Hub', 'address': '7 Calangute Beach Road', 'city': 'Goa', 'pincode': '403516',
        'phone': '9876500002', 'longitude': Decimal('73.755300'), 'latitude': Decimal('15.543700'),
    },
}

VEHICLES = {
    'rajesh@shop.com': [
        {'name': 'Classic 350', 'brand': 'Royal Enfield', 'type': Vehicle.BIKE, 'engine_capacity_cc': 349,
         'transmission': Vehicle.MANUAL, 'fuel_type': Vehicle.PETROL, 'daily_rent_inr': Decimal('1200'),
         'hourly_rent_inr': Decimal('150'), 'seating_capacity': 2, 'odo_reading_km': 15230,
         'features': ['Dual-channel ABS', 'Digital console']},
        {'name': 'Duke 200', 'brand': 'KTM', 'type': Vehicle.BIKE, 'engine_capacity_cc': 199,
         'transmission': Vehicle.MANUAL, 'fuel_type': Vehicle.PETROL, 'daily_rent_inr': Decimal('900'),
         'seating_capacity': 2, 'odo_reading_km': 8800, 'features': ['LED headlamp']},
        {'name': 'Swift', 'brand': 'Maruti Suzuki', 'type': Vehicle.CAR, 'engine_capacity_cc': 1197,
         'transmission': Vehicle.MANUAL, 'fuel_type': Vehicle.PETROL, 'daily_rent_inr': Decimal('2500'),
         'seating_capacity': 5, 'odo_reading_km': 32000, 'features': ['Air conditioning', 'Bluetooth connectivity']},
    ],
    'priya@shop.com': [
        {'name': 'Activa 6G', 'brand': 'Honda', 'type': Vehicle.SCOOTER, 'engine_capacity_cc': 110,
         'transmission': Vehicle.AUTOMATIC, 'fuel_type': Vehicle.PETROL, 'daily_rent_inr': Decimal('400'),
         'hourly_rent_inr': Decimal('60'), 'seating_capacity': 2, 'odo_reading_km': 5400,
         'features': ['Under-seat storage']},
        {'name': 'iQube', 'brand': 'TVS', 'type': Vehicle.SCOOTER, 'engine_capacity_cc': 0,
         'transmission': Vehicle.AUTOMATIC, 'fuel_type': Vehicle.ELECTRIC, 'daily_rent_inr': Decimal('500'),
         'seating_capacity': 2, 'features': ['Bluetooth connectivity']},
    ],
}


class Command(BaseCommand):
    help = 'Load demo users, shops and vehicles (use --destroy to wipe them instead)'

    def add_arguments(self, parser):
        parser.add_argument('--destroy', action='store_true', help='Delete all RideHub data and exit')

    @transaction.atomic
    def handle(self, *args, **options):
        self.destroy()
        if options['destroy']:
            self.stdout.write(self.style.WARNING('Data destroyed.'))
            return

        users = {}
        for data in USERS:
            data = dict(data)
            password = data.pop('password')
            role = data.pop('role')
            if role == User.ADMIN:
                user = User.objects.create_superuser(password=password, **data)
            else:
                user = User.objects.create_user(password=password, role=role, **data)
            users[user.email] = user
        self.stdout.write(self.style.SUCCESS(f"Users created: {len(users)}"))

        vehicle_count = 0
        for email, shop_data in SHOPS.items():
            shop = Shop.objects.create(owner=users[email], **shop_data)
            for vehicle_data in VEHICLES.get(email, []):
                Vehicle.objects.create(shop=shop, **vehicle_data)
                vehicle_count += 1
        self.stdout.write(self.style.SUCCESS(f"Shops created: {len(SHOPS)}, vehicles created: {vehicle_count}"))

        self.stdout.write('Login credentials:')
        for data in USERS:
            self.stdout.write(f"  {data['role']}: {data['email']} / {data['password']}")

    def destroy(self):
        Payment.objects.all().delete()
        Booking.objects.all().delete()
        Vehicle.objects.all().delete()
        Shop.objects.all().delete()
        User.objects.filter(email__in=[u['email'] for u in USERS]).delete()
