from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from bookings import services as booking_services
from bookings.models import Booking
from ridehub_backend.testing import dt, make_admin, make_shop, make_user, make_vehicle
from users.principal import Principal
from .models import Vehicle, derive_category


class CategoryTests(TestCase):
    def test_derive_category(self):
        self.assertEqual(derive_category(Vehicle.BIKE, 150), Vehicle.UNDER_300CC)
        self.assertEqual(derive_category(Vehicle.BIKE, 299), Vehicle.UNDER_300CC)
        self.assertEqual(derive_category(Vehicle.BIKE, 300), Vehicle.FROM_300_TO_450CC)
        self.assertEqual(derive_category(Vehicle.BIKE, 450), Vehicle.FROM_300_TO_450CC)
        self.assertIsNone(derive_category(Vehicle.BIKE, 650))
        self.assertIsNone(derive_category(Vehicle.SCOOTER, 110))
        self.assertIsNone(derive_category(Vehicle.CAR, 1197))

    def test_category_follows_engine_capacity_on_save(self):
        owner = make_user('rajesh@shop.com', role='shop_owner')
        vehicle = make_vehicle(make_shop(owner), engine_capacity_cc=199)
        self.assertEqual(vehicle.category, Vehicle.UNDER_300CC)

        vehicle.engine_capacity_cc = 411
        vehicle.save(update_fields=['engine_capacity_cc'])
        vehicle.refresh_from_db()
        self.assertEqual(vehicle.category, Vehicle.FROM_300_TO_450CC)


class VehicleApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = make_user('john@customer.com')
        self.owner = make_user('rajesh@shop.com', role='shop_owner')
        self.other_owner = make_user('priya@shop.com', role='shop_owner')
        self.admin = make_admin()
        self.shop = make_shop(self.owner)
        self.other_shop = make_shop(self.other_owner, city='Goa', pincode='403516')

        self.bike = make_vehicle(self.shop, hourly_rent_inr=Decimal('80'))
        self.car = make_vehicle(
            self.shop, name='Swift', brand='Maruti Suzuki', type=Vehicle.CAR, engine_capacity_cc=1197,
            daily_rent_inr=Decimal('2500'), seating_capacity=5,
        )
        self.scooter = make_vehicle(
            self.other_shop, name='Activa 6G', brand='Honda', type=Vehicle.SCOOTER, engine_capacity_cc=110,
            transmission=Vehicle.AUTOMATIC, daily_rent_inr=Decimal('400'), available=False,
        )

    def payload(self, **overrides):
        data = {
            'name': 'Duke 200',
            'brand': 'KTM',
            'type': 'bike',
            'engine_capacity_cc': 199,
            'transmission': 'manual',
            'fuel_type': 'petrol',
            'daily_rent_inr': '900.00',
            'seating_capacity': 2,
            'features': [' LED headlamp ', 'Digital console'],
        }
        data.update(overrides)
        return data

    def list_ids(self, **params):
        response = self.client.get(reverse('vehicle-list'), params)
        self.assertEqual(response.status_code, 200)
        return {item['id'] for item in response.json()['data']}

    def test_public_listing_and_filters(self):
        self.assertEqual(self.list_ids(), {self.bike.pk, self.car.pk, self.scooter.pk})
        self.assertEqual(self.list_ids(type='car'), {self.car.pk})
        self.assertEqual(self.list_ids(category='under_300cc'), set())
        self.assertEqual(self.list_ids(category='300_to_450cc'), {self.bike.pk})
        self.assertEqual(self.list_ids(transmission='automatic'), {self.scooter.pk})
        self.assertEqual(self.list_ids(minPrice=450, maxPrice=1000), {self.bike.pk})
        self.assertEqual(self.list_ids(available='true'), {self.bike.pk, self.car.pk})
        self.assertEqual(self.list_ids(shopId=self.other_shop.pk), {self.scooter.pk})
        self.assertEqual(self.list_ids(city='goa'), {self.scooter.pk})

    def test_retrieve_is_public(self):
        response = self.client.get(reverse('vehicle-detail', args=[self.bike.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['category'], Vehicle.FROM_300_TO_450CC)
        self.assertEqual(response.json()['data']['shop']['id'], self.shop.pk)

    def test_owner_adds_vehicle_to_own_shop(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(reverse('vehicle-list'), self.payload(), format='json')
        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual(data['shop']['id'], self.shop.pk)
        self.assertEqual(data['category'], Vehicle.UNDER_300CC)
        self.assertEqual(data['features'], ['LED headlamp', 'Digital console'])

    def test_owner_without_shop_cannot_add_vehicle(self):
        self.client.force_authenticate(user=make_user('new@shop.com', role='shop_owner'))
        response = self.client.post(reverse('vehicle-list'), self.payload(), format='json')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['message'], 'Please create a shop first before adding vehicles')

    def test_customer_cannot_add_vehicle(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(reverse('vehicle-list'), self.payload(), format='json')
        self.assertEqual(response.status_code, 403)

    def test_only_owning_shop_updates(self):
        url = reverse('vehicle-detail', args=[self.bike.pk])
        self.client.force_authenticate(user=self.other_owner)
        self.assertEqual(self.client.patch(url, {'daily_rent_inr': '1'}, format='json').status_code, 403)

        self.client.force_authenticate(user=self.owner)
        response = self.client.patch(url, {'daily_rent_inr': '650.00', 'available': False}, format='json')
        self.assertEqual(response.status_code, 200)
        self.bike.refresh_from_db()
        self.assertEqual(self.bike.daily_rent_inr, Decimal('650'))
        self.assertFalse(self.bike.available)

    def test_odometer_cannot_go_backwards(self):
        self.bike.odo_reading_km = 5000
        self.bike.save()
        self.client.force_authenticate(user=self.owner)
        response = self.client.patch(reverse('vehicle-detail', args=[self.bike.pk]), {'odo_reading_km': 4000}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('odo_reading_km', response.json()['errors'])

    def test_mine_lists_own_vehicles(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse('vehicle-mine'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['count'], 2)

    def test_check_availability(self):
        url = reverse('vehicle-check-availability', args=[self.bike.pk])
        window = {'startDate': '2024-01-01T10:00:00Z', 'endDate': '2024-01-03T10:00:00Z'}

        response = self.client.post(url, window, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['available'])

        booking = booking_services.create_booking(
            Principal.from_user(self.customer), self.bike.pk, dt('2024-01-02T10:00'), dt('2024-01-04T10:00'),
        )
        self.assertTrue(self.client.post(url, window, format='json').json()['available'])

        booking_services.update_booking_status(booking.pk, Booking.CONFIRMED, Principal.from_user(self.owner))
        body = self.client.post(url, window, format='json').json()
        self.assertFalse(body['available'])
        self.assertEqual(body['message'], 'Vehicle is already booked for these dates')

    def test_check_availability_for_unavailable_vehicle(self):
        url = reverse('vehicle-check-availability', args=[self.scooter.pk])
        body = self.client.post(url, {'startDate': '2024-01-01T10:00:00Z', 'endDate': '2024-01-02T10:00:00Z'}, format='json').json()
        self.assertFalse(body['available'])

    def test_check_availability_rejects_inverted_window(self):
        url = reverse('vehicle-check-availability', args=[self.bike.pk])
        response = self.client.post(url, {'startDate': '2024-01-03T10:00:00Z', 'endDate': '2024-01-01T10:00:00Z'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_delete_refused_with_active_bookings(self):
        booking = booking_services.create_booking(
            Principal.from_user(self.customer), self.bike.pk, dt('2024-01-01T10:00'), dt('2024-01-02T10:00'),
        )
        booking_services.update_booking_status(booking.pk, Booking.CONFIRMED, Principal.from_user(self.owner))

        self.client.force_authenticate(user=self.owner)
        response = self.client.delete(reverse('vehicle-detail', args=[self.bike.pk]))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Cannot delete vehicle with active bookings')
        self.assertTrue(Vehicle.objects.filter(pk=self.bike.pk).exists())

    def test_delete_removes_finished_bookings(self):
        booking = booking_services.create_booking(
            Principal.from_user(self.customer), self.bike.pk, dt('2024-01-01T10:00'), dt('2024-01-02T10:00'),
        )
        booking_services.cancel_booking(booking.pk, Principal.from_user(self.customer))

        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse('vehicle-detail', args=[self.bike.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Vehicle.objects.filter(pk=self.bike.pk).exists())
        self.assertFalse(Booking.objects.filter(pk=booking.pk).exists())
