from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from bookings import services as booking_services
from bookings.models import Booking
from ridehub_backend.testing import dt, make_admin, make_shop, make_user, make_vehicle
from users.models import User
from users.principal import Principal
from vehicles.models import Vehicle
from .models import Shop


class ShopApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = make_user('rajesh@shop.com', role='shop_owner')
        self.other_owner = make_user('priya@shop.com', role='shop_owner')
        self.customer = make_user('john@customer.com')
        self.admin = make_admin()

    def payload(self, **overrides):
        data = {
            'name': 'Bangalore Bike Rentals',
            'address': '12 MG Road',
            'city': 'Bangalore',
            'pincode': '560001',
            'phone': '9876500001',
            'longitude': '77.594566',
            'latitude': '12.971599',
        }
        data.update(overrides)
        return data

    def test_register_shop(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(reverse('shop-list'), self.payload(), format='json')
        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual(data['owner']['id'], self.owner.pk)
        self.assertEqual(data['location'], {'type': 'Point', 'coordinates': [77.594566, 12.971599]})
        self.assertEqual(data['vehiclesCount'], 0)

    def test_one_shop_per_owner(self):
        make_shop(self.owner)
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(reverse('shop-list'), self.payload(), format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'You already have a shop registered')
        self.assertEqual(Shop.objects.filter(owner=self.owner).count(), 1)

    def test_invalid_pincode(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(reverse('shop-list'), self.payload(pincode='12'), format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('pincode', response.json()['errors'])

    def test_customer_cannot_register_shop(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(reverse('shop-list'), self.payload(), format='json')
        self.assertEqual(response.status_code, 403)

    def test_public_listing_hides_inactive_and_filters_city(self):
        active = make_shop(self.owner)
        make_shop(self.other_owner, city='Goa', is_active=False)
        response = self.client.get(reverse('shop-list'))
        self.assertEqual([shop['id'] for shop in response.json()['data']], [active.pk])
        self.assertEqual(self.client.get(reverse('shop-list'), {'city': 'goa'}).json()['count'], 0)
        self.assertEqual(self.client.get(reverse('shop-list'), {'city': 'banga'}).json()['count'], 1)

    def test_my_shop(self):
        shop = make_shop(self.owner)
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse('shop-mine'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['id'], shop.pk)

        self.client.force_authenticate(user=self.other_owner)
        response = self.client.get(reverse('shop-mine'))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['message'], 'No shop found for this user')

    def test_only_owner_or_admin_updates(self):
        shop = make_shop(self.owner)
        url = reverse('shop-detail', args=[shop.pk])
        self.client.force_authenticate(user=self.other_owner)
        self.assertEqual(self.client.patch(url, {'name': 'Taken over'}, format='json').status_code, 403)

        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(url, {'name': 'Renamed Rentals'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['name'], 'Renamed Rentals')

    def test_delete_cascades(self):
        shop = make_shop(self.owner)
        vehicle = make_vehicle(shop)
        booking = booking_services.create_booking(
            Principal.from_user(self.customer), vehicle.pk, dt('2024-01-01T10:00'), dt('2024-01-02T10:00'),
        )

        self.client.force_authenticate(user=self.owner)
        response = self.client.delete(reverse('shop-detail', args=[shop.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Shop.objects.filter(pk=shop.pk).exists())
        self.assertFalse(Vehicle.objects.filter(pk=vehicle.pk).exists())
        self.assertFalse(Booking.objects.filter(pk=booking.pk).exists())


class SeedCommandTests(TestCase):
    def test_seed_and_destroy(self):
        out = StringIO()
        call_command('seed_ridehub', stdout=out)
        self.assertIn('Login credentials', out.getvalue())
        self.assertEqual(Shop.objects.count(), 2)
        self.assertEqual(Vehicle.objects.count(), 5)
        self.assertTrue(User.objects.get(email='admin@ridehub.com').is_superuser)

        call_command('seed_ridehub', stdout=out)
        self.assertEqual(Shop.objects.count(), 2)

        call_command('seed_ridehub', '--destroy', stdout=out)
        self.assertEqual(Shop.objects.count(), 0)
        self.assertFalse(User.objects.filter(email='admin@ridehub.com').exists())
