from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from ridehub_backend.testing import make_admin, make_user
from .models import User
from .principal import Principal


class PrincipalTests(TestCase):
    def test_roles(self):
        customer = Principal.from_user(make_user('john@customer.com'))
        self.assertTrue(customer.is_customer)
        self.assertFalse(customer.is_admin)
        owner = Principal.from_user(make_user('rajesh@shop.com', role=User.SHOP_OWNER))
        self.assertTrue(owner.is_shop_owner)

    def test_superuser_acts_as_admin(self):
        user = User.objects.create_superuser(
            email='root@ridehub.com', phone_number='9999999999', first_name='Root', last_name='User', password='x',
        )
        self.assertEqual(user.role, User.ADMIN)
        self.assertTrue(Principal.from_user(user).is_admin)


class AuthApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def register(self, **overrides):
        data = {
            'email': 'john@customer.com',
            'password': 'customer123',
            'first_name': 'John',
            'last_name': 'Customer',
            'phone_number': '9876543214',
        }
        data.update(overrides)
        return self.client.post(reverse('register'), data, format='json')

    def test_register_and_login(self):
        response = self.register()
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['role'], User.CUSTOMER)
        self.assertNotIn('password', response.json()['data'])

        response = self.client.post(reverse('token_obtain_pair'), {
            'email': 'john@customer.com', 'password': 'customer123',
        }, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.json())

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.json()['access']}")
        response = self.client.get(reverse('profile'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['name'], 'John Customer')

    def test_register_shop_owner(self):
        response = self.register(email='rajesh@shop.com', role=User.SHOP_OWNER)
        self.assertEqual(response.json()['data']['role'], User.SHOP_OWNER)

    def test_cannot_self_register_as_admin(self):
        response = self.register(role=User.ADMIN)
        self.assertEqual(response.status_code, 400)
        self.assertFalse(User.objects.filter(email='john@customer.com').exists())

    def test_duplicate_email(self):
        self.register()
        response = self.register(phone_number='9876543299')
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_invalid_phone(self):
        response = self.register(phone_number='12345')
        self.assertEqual(response.status_code, 400)
        self.assertIn('phone_number', response.json()['errors'])


class ProfileApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user('john@customer.com', password='customer123')
        self.client.force_authenticate(user=self.user)

    def test_update_profile(self):
        response = self.client.put(reverse('profile'), {'first_name': 'Johnny'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertEqual(self.user.first_name, 'Johnny')

    def test_change_password(self):
        url = reverse('change-password')
        response = self.client.put(url, {'currentPassword': 'wrong', 'newPassword': 'newpass123'}, format='json')
        self.assertEqual(response.status_code, 400)

        response = self.client.put(url, {'currentPassword': 'customer123', 'newPassword': 'newpass123'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('newpass123'))


class UserAdminApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_admin()
        self.customer = make_user('john@customer.com')

    def test_admin_only(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.get(reverse('user-list'))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['message'], 'User role is not authorized to access this route')

    def test_admin_manages_users(self):
        self.client.force_authenticate(user=self.admin)
        self.assertEqual(self.client.get(reverse('user-list')).json()['count'], 2)

        url = reverse('user-detail', args=[self.customer.pk])
        response = self.client.patch(url, {'role': User.SHOP_OWNER}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['role'], User.SHOP_OWNER)

        self.assertEqual(self.client.delete(url).status_code, 200)
        self.assertFalse(User.objects.filter(pk=self.customer.pk).exists())


class HealthCheckTests(TestCase):
    def test_health(self):
        response = APIClient().get(reverse('health'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True, 'message': 'RideHub API is running'})
