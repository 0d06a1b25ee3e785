from decimal import Decimal
from unittest.mock import MagicMock, patch

import requests
from django.core.exceptions import ImproperlyConfigured
from django.db import connection
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from bookings import services as booking_services
from bookings.models import Booking
from ridehub_backend.exceptions import (
    AlreadyPaid, DateConflict, InvalidRequest, InvalidSignature, InvalidState, NotFound, PaymentGatewayError, Unauthorized,
)
from ridehub_backend.testing import dt, make_admin, make_shop, make_user, make_vehicle
from users.principal import Principal
from .models import Payment
from .services import razorpay
from .services.payment_service import PaymentService
from .services.processors import (
    MockPaymentProcessor, RazorpayPaymentProcessor, get_payment_processor,
)


class PaymentTestBase(TestCase):
    def setUp(self):
        get_payment_processor.cache_clear()
        self.addCleanup(get_payment_processor.cache_clear)

        self.customer = make_user('john@customer.com')
        self.other_customer = make_user('sarah@customer.com')
        self.owner = make_user('rajesh@shop.com', role='shop_owner')
        self.admin = make_admin()
        self.shop = make_shop(self.owner)
        self.vehicle = make_vehicle(self.shop, daily_rent_inr=Decimal('500'))
        self.as_customer = Principal.from_user(self.customer)
        self.booking = booking_services.create_booking(
            self.as_customer, self.vehicle.pk, dt('2024-01-01T10:00'), dt('2024-01-03T10:00'),
        )

    def gateway_order(self, mock_post, order_id='order_TEST123'):
        mock_post.return_value.json.return_value = {
            'id': order_id,
            'amount': 100000,
            'currency': 'INR',
            'receipt': f'receipt_{self.booking.pk}',
            'status': 'created',
        }
        return order_id


class SignatureTests(TestCase):
    def test_known_signature(self):
        signature = razorpay.expected_signature('order_1', 'pay_1', secret='secret')
        self.assertEqual(len(signature), 64)
        self.assertTrue(razorpay.verify_signature('order_1', 'pay_1', signature, secret='secret'))

    def test_tampered_signature(self):
        signature = razorpay.expected_signature('order_1', 'pay_1', secret='secret')
        self.assertFalse(razorpay.verify_signature('order_1', 'pay_2', signature, secret='secret'))
        self.assertFalse(razorpay.verify_signature('order_1', 'pay_1', signature, secret='other'))
        self.assertFalse(razorpay.verify_signature('order_1', 'pay_1', 'deadbeef', secret='secret'))


class ProcessorSelectionTests(TestCase):
    def setUp(self):
        get_payment_processor.cache_clear()
        self.addCleanup(get_payment_processor.cache_clear)

    @override_settings(PAYMENT_MODE='mock')
    def test_mock_mode(self):
        self.assertIsInstance(get_payment_processor(), MockPaymentProcessor)

    @override_settings(PAYMENT_MODE='razorpay')
    def test_gateway_mode(self):
        self.assertIsInstance(get_payment_processor(), RazorpayPaymentProcessor)

    @override_settings(PAYMENT_MODE='bitcoin')
    def test_unknown_mode(self):
        with self.assertRaises(ImproperlyConfigured):
            get_payment_processor()


@override_settings(PAYMENT_MODE='mock')
class MockPaymentTests(PaymentTestBase):
    def test_mock_payment_settles_immediately(self):
        result = PaymentService.create_payment(self.booking.pk, self.as_customer)
        self.assertTrue(result.settled)
        self.assertIsNone(result.order)
        self.assertEqual(result.payment.method, Payment.MOCK)
        self.assertEqual(result.payment.amount, Decimal('1000'))
        self.assertTrue(result.payment.transaction_id.startswith('MOCK_'))

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PAID)
        self.assertEqual(self.booking.status, Booking.CONFIRMED)

    def test_paying_twice_fails(self):
        PaymentService.create_payment(self.booking.pk, self.as_customer)
        with self.assertRaises(AlreadyPaid):
            PaymentService.create_payment(self.booking.pk, self.as_customer)
        self.assertEqual(Payment.objects.filter(booking=self.booking).count(), 1)

    def test_other_customer_cannot_pay(self):
        with self.assertRaises(Unauthorized):
            PaymentService.create_payment(self.booking.pk, Principal.from_user(self.other_customer))
        self.assertFalse(Payment.objects.exists())

    def test_missing_booking(self):
        with self.assertRaises(NotFound):
            PaymentService.create_payment(424242, self.as_customer)

    def test_cancelled_booking_cannot_be_paid(self):
        booking_services.cancel_booking(self.booking.pk, self.as_customer)
        with self.assertRaises(InvalidState):
            PaymentService.create_payment(self.booking.pk, self.as_customer)

    def test_settlement_does_not_rewind_ongoing_booking(self):
        booking_services.update_booking_status(self.booking.pk, Booking.CONFIRMED, Principal.from_user(self.owner))
        booking_services.update_booking_status(self.booking.pk, Booking.ONGOING, Principal.from_user(self.owner))
        PaymentService.create_payment(self.booking.pk, self.as_customer)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.ONGOING)
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PAID)

    def test_mock_settlement_refuses_a_taken_slot(self):
        rival = booking_services.create_booking(
            Principal.from_user(self.other_customer), self.vehicle.pk, dt('2024-01-02T10:00'), dt('2024-01-04T10:00'),
        )
        booking_services.update_booking_status(rival.pk, Booking.CONFIRMED, Principal.from_user(self.owner))

        with self.assertRaises(DateConflict):
            PaymentService.create_payment(self.booking.pk, self.as_customer)

        self.assertFalse(Payment.objects.filter(booking=self.booking).exists())
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.PENDING)
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PENDING)


@override_settings(PAYMENT_MODE='razorpay', RAZORPAY_KEY_ID='test_key', RAZORPAY_KEY_SECRET='test_secret')
class RazorpayPaymentTests(PaymentTestBase):
    @patch('payments.services.razorpay.requests.post')
    def test_create_order(self, mock_post):
        order_id = self.gateway_order(mock_post)
        result = PaymentService.create_payment(self.booking.pk, self.as_customer)

        self.assertFalse(result.settled)
        self.assertEqual(result.order['orderId'], order_id)
        self.assertEqual(result.order['keyId'], 'test_key')
        self.assertEqual(result.payment.gateway_order_id, order_id)
        self.assertEqual(result.payment.status, Payment.PENDING)

        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs['json']['amount'], 100000)
        self.assertEqual(kwargs['json']['currency'], 'INR')
        self.assertEqual(kwargs['json']['receipt'], f'receipt_{self.booking.pk}')
        self.assertEqual(kwargs['auth'], ('test_key', 'test_secret'))

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PENDING)
        self.assertEqual(self.booking.status, Booking.PENDING)

    @patch('payments.services.razorpay.requests.post')
    def test_gateway_failure(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('gateway down')
        with self.assertRaises(PaymentGatewayError):
            PaymentService.create_payment(self.booking.pk, self.as_customer)
        self.assertFalse(Payment.objects.exists())

    @patch('payments.services.razorpay.requests.post')
    def test_verify_settles_payment_and_booking(self, mock_post):
        order_id = self.gateway_order(mock_post)
        PaymentService.create_payment(self.booking.pk, self.as_customer)
        signature = razorpay.expected_signature(order_id, 'pay_ABC')

        payment, booking = PaymentService.verify_payment(order_id, 'pay_ABC', signature)
        self.assertEqual(payment.status, Payment.SUCCESS)
        self.assertEqual(payment.transaction_id, 'pay_ABC')
        self.assertEqual(booking.payment_status, Booking.PAYMENT_PAID)
        self.assertEqual(booking.status, Booking.CONFIRMED)

    @patch('payments.services.razorpay.requests.post')
    def test_verify_twice_is_harmless(self, mock_post):
        order_id = self.gateway_order(mock_post)
        PaymentService.create_payment(self.booking.pk, self.as_customer)
        signature = razorpay.expected_signature(order_id, 'pay_ABC')
        PaymentService.verify_payment(order_id, 'pay_ABC', signature)
        payment, booking = PaymentService.verify_payment(order_id, 'pay_ABC', signature)
        self.assertEqual(payment.status, Payment.SUCCESS)
        self.assertEqual(booking.status, Booking.CONFIRMED)
        self.assertEqual(Payment.objects.count(), 1)

    @patch('payments.services.razorpay.requests.post')
    def test_tampered_signature_changes_nothing(self, mock_post):
        order_id = self.gateway_order(mock_post)
        PaymentService.create_payment(self.booking.pk, self.as_customer)
        signature = razorpay.expected_signature(order_id, 'pay_ABC')

        with self.assertRaises(InvalidSignature):
            PaymentService.verify_payment(order_id, 'pay_XYZ', signature)

        payment = Payment.objects.get(gateway_order_id=order_id)
        self.assertEqual(payment.status, Payment.PENDING)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PENDING)
        self.assertEqual(self.booking.status, Booking.PENDING)

    @patch('payments.services.razorpay.requests.post')
    def test_gateway_called_outside_the_booking_transaction(self, mock_post):
        depth = len(connection.atomic_blocks)
        depths_seen = []
        response = MagicMock()
        response.json.return_value = {'id': 'order_TEST123', 'amount': 100000, 'currency': 'INR'}

        def post(*args, **kwargs):
            depths_seen.append(len(connection.atomic_blocks))
            return response

        mock_post.side_effect = post
        result = PaymentService.create_payment(self.booking.pk, self.as_customer)
        self.assertEqual(depths_seen, [depth])
        self.assertEqual(result.payment.gateway_order_id, 'order_TEST123')

    @patch('payments.services.razorpay.requests.post')
    def test_verify_after_cancel_is_refused(self, mock_post):
        order_id = self.gateway_order(mock_post)
        PaymentService.create_payment(self.booking.pk, self.as_customer)
        booking_services.cancel_booking(self.booking.pk, self.as_customer)
        signature = razorpay.expected_signature(order_id, 'pay_ABC')

        with self.assertRaises(InvalidState):
            PaymentService.verify_payment(order_id, 'pay_ABC', signature)

        payment = Payment.objects.get(gateway_order_id=order_id)
        self.assertEqual(payment.status, Payment.PENDING)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.CANCELLED)
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PENDING)

    @patch('payments.services.razorpay.requests.post')
    def test_verify_fallback_rejects_order_of_another_booking(self, mock_post):
        self.gateway_order(mock_post)
        PaymentService.create_payment(self.booking.pk, self.as_customer)
        signature = razorpay.expected_signature('order_ELSEWHERE', 'pay_1')

        with self.assertRaises(InvalidRequest):
            PaymentService.verify_payment('order_ELSEWHERE', 'pay_1', signature, booking_id=self.booking.pk)

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PENDING)

    def test_verify_fallback_refuses_cancelled_booking(self):
        booking_services.cancel_booking(self.booking.pk, self.as_customer)
        signature = razorpay.expected_signature('order_unknown', 'pay_1')
        with self.assertRaises(InvalidState):
            PaymentService.verify_payment('order_unknown', 'pay_1', signature, booking_id=self.booking.pk)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PENDING)

    def test_missing_details(self):
        with self.assertRaises(InvalidRequest):
            PaymentService.verify_payment('order_1', '', 'sig')

    def test_verify_falls_back_to_booking_id(self):
        signature = razorpay.expected_signature('order_unknown', 'pay_1')
        payment, booking = PaymentService.verify_payment('order_unknown', 'pay_1', signature, booking_id=self.booking.pk)
        self.assertIsNone(payment)
        self.assertEqual(booking.payment_status, Booking.PAYMENT_PAID)
        self.assertEqual(booking.status, Booking.CONFIRMED)

    def test_verify_unknown_order_without_booking(self):
        signature = razorpay.expected_signature('order_unknown', 'pay_1')
        with self.assertRaises(NotFound):
            PaymentService.verify_payment('order_unknown', 'pay_1', signature)


@override_settings(PAYMENT_MODE='mock')
class PaymentApiTests(PaymentTestBase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def test_create_payment_endpoint(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(reverse('create-payment'), {'bookingId': self.booking.pk}, format='json')
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['message'], 'Mock payment successful')
        self.assertEqual(body['data']['status'], Payment.SUCCESS)

        response = self.client.post(reverse('create-payment'), {'bookingId': self.booking.pk}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'already_paid')

    def test_shop_owner_cannot_pay(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(reverse('create-payment'), {'bookingId': self.booking.pk}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_verify_endpoint_rejects_bad_signature(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(reverse('verify-payment'), {
            'razorpay_order_id': 'order_1',
            'razorpay_payment_id': 'pay_1',
            'razorpay_signature': 'not-a-signature',
            'bookingId': self.booking.pk,
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'invalid_signature')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PAYMENT_PENDING)

    def test_verify_endpoint_missing_fields(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(reverse('verify-payment'), {'razorpay_order_id': 'order_1'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Missing payment verification details')

    def test_payment_reads(self):
        PaymentService.create_payment(self.booking.pk, self.as_customer)
        payment = Payment.objects.get(booking=self.booking)

        self.client.force_authenticate(user=self.customer)
        response = self.client.get(reverse('my-payments'))
        self.assertEqual(response.json()['count'], 1)
        self.assertEqual(self.client.get(reverse('payment-detail', args=[payment.pk])).status_code, 200)

        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse('booking-payment', args=[self.booking.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['id'], payment.pk)

        self.client.force_authenticate(user=self.other_customer)
        self.assertEqual(self.client.get(reverse('payment-detail', args=[payment.pk])).status_code, 403)
        self.assertEqual(self.client.get(reverse('booking-payment', args=[self.booking.pk])).status_code, 403)

        self.client.force_authenticate(user=self.admin)
        self.assertEqual(self.client.get(reverse('payment-detail', args=[payment.pk])).status_code, 200)
