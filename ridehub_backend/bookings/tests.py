from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from ridehub_backend.exceptions import (
    DateConflict, InvalidRequest, InvalidState, InvalidTransition, NotFound, Unauthorized, Unavailable,
)
from ridehub_backend.testing import dt, make_admin, make_shop, make_user, make_vehicle
from users.principal import Principal
from vehicles.models import Vehicle
from . import services
from .models import Booking


class BookingServiceTestBase(TestCase):
    def setUp(self):
        self.customer = make_user('john@customer.com')
        self.other_customer = make_user('sarah@customer.com')
        self.owner = make_user('rajesh@shop.com', role='shop_owner')
        self.other_owner = make_user('priya@shop.com', role='shop_owner')
        self.admin = make_admin()
        self.shop = make_shop(self.owner)
        make_shop(self.other_owner, name='Other Rentals')
        self.vehicle = make_vehicle(self.shop, daily_rent_inr=Decimal('500'), hourly_rent_inr=Decimal('80'))

        self.as_customer = Principal.from_user(self.customer)
        self.as_other_customer = Principal.from_user(self.other_customer)
        self.as_owner = Principal.from_user(self.owner)
        self.as_other_owner = Principal.from_user(self.other_owner)
        self.as_admin = Principal.from_user(self.admin)

    def book(self, start='2024-01-01T10:00', end='2024-01-03T10:00', rental_type='daily', principal=None, vehicle=None):
        return services.create_booking(
            principal or self.as_customer,
            (vehicle or self.vehicle).pk,
            dt(start),
            dt(end),
            rental_type,
        )


class CreateBookingTests(BookingServiceTestBase):
    def test_daily_booking_price_and_duration(self):
        booking = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        self.assertEqual(booking.total_days, 2)
        self.assertEqual(booking.total_hours, 0)
        self.assertEqual(booking.total_amount, Decimal('1000'))
        self.assertEqual(booking.status, Booking.PENDING)
        self.assertEqual(booking.payment_status, Booking.PAYMENT_PENDING)
        self.assertEqual(booking.shop_id, self.shop.pk)

    def test_partial_day_rounds_up(self):
        booking = self.book('2024-01-01T10:00', '2024-01-02T11:00')
        self.assertEqual(booking.total_days, 2)
        self.assertEqual(booking.total_amount, Decimal('1000'))

    def test_hourly_booking_uses_hourly_rate(self):
        booking = self.book('2024-01-01T10:00', '2024-01-01T13:30', rental_type='hourly')
        self.assertEqual(booking.total_hours, 4)
        self.assertEqual(booking.total_days, 1)
        self.assertEqual(booking.total_amount, Decimal('320'))

    def test_hourly_booking_without_hourly_rate_is_rejected(self):
        vehicle = make_vehicle(self.shop, name='Daily only', daily_rent_inr=Decimal('500'))
        with self.assertRaises(InvalidRequest) as ctx:
            self.book(rental_type='hourly', vehicle=vehicle)
        self.assertIn('Hourly rental not available', str(ctx.exception.detail))
        self.assertFalse(Booking.objects.filter(vehicle=vehicle).exists())

    def test_missing_vehicle(self):
        with self.assertRaises(NotFound):
            services.create_booking(self.as_customer, 999999, dt('2024-01-01T10:00'), dt('2024-01-02T10:00'))

    def test_unavailable_vehicle(self):
        self.vehicle.available = False
        self.vehicle.save()
        with self.assertRaises(Unavailable):
            self.book()

    def test_end_before_start_is_rejected(self):
        with self.assertRaises(InvalidRequest):
            self.book('2024-01-03T10:00', '2024-01-01T10:00')

    def test_pending_bookings_do_not_block(self):
        first = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        second = self.book('2024-01-02T10:00', '2024-01-04T10:00', principal=self.as_other_customer)
        self.assertEqual(first.status, Booking.PENDING)
        self.assertEqual(second.status, Booking.PENDING)

    def test_confirmed_booking_blocks_overlap(self):
        first = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        services.update_booking_status(first.pk, Booking.CONFIRMED, self.as_owner)
        with self.assertRaises(DateConflict):
            self.book('2024-01-02T10:00', '2024-01-04T10:00', principal=self.as_other_customer)

    def test_overlap_bounds_are_inclusive(self):
        first = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        services.update_booking_status(first.pk, Booking.CONFIRMED, self.as_owner)
        with self.assertRaises(DateConflict):
            self.book('2024-01-03T10:00', '2024-01-04T10:00', principal=self.as_other_customer)

    def test_disjoint_ranges_do_not_conflict(self):
        first = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        services.update_booking_status(first.pk, Booking.CONFIRMED, self.as_owner)
        later = self.book('2024-01-05T10:00', '2024-01-06T10:00', principal=self.as_other_customer)
        self.assertEqual(later.total_days, 1)

    def test_cancelled_and_completed_bookings_do_not_block(self):
        first = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        services.cancel_booking(first.pk, self.as_customer)
        self.book('2024-01-01T10:00', '2024-01-03T10:00', principal=self.as_other_customer)

    def test_creation_leaves_vehicle_available(self):
        self.book()
        self.vehicle.refresh_from_db()
        self.assertTrue(self.vehicle.available)


class BookingStatusTests(BookingServiceTestBase):
    def test_forward_transitions(self):
        booking = self.book()
        for new_status in (Booking.CONFIRMED, Booking.ONGOING, Booking.COMPLETED):
            booking = services.update_booking_status(booking.pk, new_status, self.as_owner)
            self.assertEqual(booking.status, new_status)

    def test_backward_transition_is_rejected(self):
        booking = self.book()
        services.update_booking_status(booking.pk, Booking.CONFIRMED, self.as_owner)
        with self.assertRaises(InvalidTransition):
            services.update_booking_status(booking.pk, Booking.PENDING, self.as_owner)

    def test_skipping_a_state_is_rejected(self):
        booking = self.book()
        with self.assertRaises(InvalidTransition):
            services.update_booking_status(booking.pk, Booking.COMPLETED, self.as_owner)

    def test_ongoing_cannot_be_cancelled_by_status(self):
        booking = self.book()
        services.update_booking_status(booking.pk, Booking.CONFIRMED, self.as_owner)
        services.update_booking_status(booking.pk, Booking.ONGOING, self.as_owner)
        with self.assertRaises(InvalidTransition):
            services.update_booking_status(booking.pk, Booking.CANCELLED, self.as_owner)

    def test_only_owning_shop_or_admin(self):
        booking = self.book()
        with self.assertRaises(Unauthorized):
            services.update_booking_status(booking.pk, Booking.CONFIRMED, self.as_other_owner)
        with self.assertRaises(Unauthorized):
            services.update_booking_status(booking.pk, Booking.CONFIRMED, self.as_customer)
        booking = services.update_booking_status(booking.pk, Booking.CONFIRMED, self.as_admin)
        self.assertEqual(booking.status, Booking.CONFIRMED)

    def test_confirming_overlapping_booking_is_refused(self):
        first = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        second = self.book('2024-01-02T10:00', '2024-01-04T10:00', principal=self.as_other_customer)
        services.update_booking_status(first.pk, Booking.CONFIRMED, self.as_owner)

        with self.assertRaises(DateConflict):
            services.update_booking_status(second.pk, Booking.CONFIRMED, self.as_owner)

        second.refresh_from_db()
        self.assertEqual(second.status, Booking.PENDING)
        self.assertEqual(Booking.objects.filter(vehicle=self.vehicle, status=Booking.CONFIRMED).count(), 1)

    def test_reconfirming_after_cancellation_frees_the_slot(self):
        first = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        second = self.book('2024-01-02T10:00', '2024-01-04T10:00', principal=self.as_other_customer)
        services.update_booking_status(first.pk, Booking.CONFIRMED, self.as_owner)
        services.cancel_booking(first.pk, self.as_customer)
        second = services.update_booking_status(second.pk, Booking.CONFIRMED, self.as_owner)
        self.assertEqual(second.status, Booking.CONFIRMED)


class CancelBookingTests(BookingServiceTestBase):
    def test_customer_cancels_pending(self):
        booking = services.cancel_booking(self.book().pk, self.as_customer)
        self.assertEqual(booking.status, Booking.CANCELLED)

    def test_cancel_confirmed(self):
        booking = self.book()
        services.update_booking_status(booking.pk, Booking.CONFIRMED, self.as_owner)
        self.assertEqual(services.cancel_booking(booking.pk, self.as_customer).status, Booking.CANCELLED)

    def test_cancel_twice_fails(self):
        booking = self.book()
        services.cancel_booking(booking.pk, self.as_customer)
        with self.assertRaises(InvalidState) as ctx:
            services.cancel_booking(booking.pk, self.as_customer)
        self.assertIn('cancelled', str(ctx.exception.detail))

    def test_cancel_ongoing_fails_with_status_in_message(self):
        booking = self.book()
        services.record_odometer(booking.pk, self.as_owner, start_odo_km=100)
        with self.assertRaises(InvalidState) as ctx:
            services.cancel_booking(booking.pk, self.as_customer)
        self.assertIn('ongoing', str(ctx.exception.detail))

    def test_other_customer_cannot_cancel(self):
        booking = self.book()
        with self.assertRaises(Unauthorized):
            services.cancel_booking(booking.pk, self.as_other_customer)

    def test_admin_can_cancel(self):
        booking = self.book()
        self.assertEqual(services.cancel_booking(booking.pk, self.as_admin).status, Booking.CANCELLED)

    def test_cancelled_is_terminal(self):
        booking = self.book()
        services.cancel_booking(booking.pk, self.as_customer)
        with self.assertRaises(InvalidTransition):
            services.update_booking_status(booking.pk, Booking.CONFIRMED, self.as_owner)


class SettleBookingTests(BookingServiceTestBase):
    def test_settle_confirms_pending_booking(self):
        booking = services.settle_booking(self.book())
        self.assertEqual(booking.status, Booking.CONFIRMED)
        self.assertEqual(booking.payment_status, Booking.PAYMENT_PAID)

    def test_cancelled_booking_is_not_settled(self):
        booking = self.book()
        services.cancel_booking(booking.pk, self.as_customer)
        booking.refresh_from_db()
        with self.assertRaises(InvalidState):
            services.settle_booking(booking)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.CANCELLED)
        self.assertEqual(booking.payment_status, Booking.PAYMENT_PENDING)

    def test_settlement_does_not_confirm_over_a_taken_slot(self):
        first = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        second = self.book('2024-01-02T10:00', '2024-01-04T10:00', principal=self.as_other_customer)
        services.update_booking_status(first.pk, Booking.CONFIRMED, self.as_owner)

        with self.assertRaises(DateConflict):
            services.settle_booking(second)

        second.refresh_from_db()
        self.assertEqual(second.status, Booking.PENDING)
        self.assertEqual(second.payment_status, Booking.PAYMENT_PENDING)


class OdometerTests(BookingServiceTestBase):
    def test_start_then_end_updates_vehicle(self):
        self.vehicle.total_distance_traveled_km = 500
        self.vehicle.save()
        booking = self.book()

        booking = services.record_odometer(booking.pk, self.as_owner, start_odo_km=10000)
        self.assertEqual(booking.status, Booking.ONGOING)
        self.assertEqual(booking.start_odo_km, 10000)

        booking = services.record_odometer(booking.pk, self.as_owner, end_odo_km=10150)
        self.assertEqual(booking.status, Booking.COMPLETED)
        self.assertEqual(booking.distance_travelled_km, 150)

        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.total_distance_traveled_km, 650)
        self.assertEqual(self.vehicle.odo_reading_km, 10150)

    def test_start_and_end_in_one_call(self):
        booking = self.book()
        booking = services.record_odometer(booking.pk, self.as_owner, start_odo_km=200, end_odo_km=260)
        self.assertEqual(booking.status, Booking.COMPLETED)
        self.assertEqual(booking.distance_travelled_km, 60)
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.total_distance_traveled_km, 60)

    def test_zero_start_reading_counts_as_recorded(self):
        booking = self.book()
        services.record_odometer(booking.pk, self.as_owner, start_odo_km=0)
        booking = services.record_odometer(booking.pk, self.as_owner, end_odo_km=42)
        self.assertEqual(booking.distance_travelled_km, 42)

    def test_end_without_start_fails(self):
        booking = self.book()
        with self.assertRaises(InvalidRequest) as ctx:
            services.record_odometer(booking.pk, self.as_owner, end_odo_km=100)
        self.assertIn('Start odometer reading must be recorded first', str(ctx.exception.detail))

    def test_end_below_start_fails(self):
        booking = self.book()
        services.record_odometer(booking.pk, self.as_owner, start_odo_km=1000)
        with self.assertRaises(InvalidRequest):
            services.record_odometer(booking.pk, self.as_owner, end_odo_km=900)
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.total_distance_traveled_km, 0)

    def test_completed_booking_cannot_be_recorded_again(self):
        booking = self.book()
        services.record_odometer(booking.pk, self.as_owner, start_odo_km=10, end_odo_km=20)
        with self.assertRaises(InvalidState):
            services.record_odometer(booking.pk, self.as_owner, end_odo_km=30)
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.total_distance_traveled_km, 10)

    def test_other_shop_cannot_record(self):
        booking = self.book()
        with self.assertRaises(Unauthorized):
            services.record_odometer(booking.pk, self.as_other_owner, start_odo_km=10)


class ShopStatsTests(BookingServiceTestBase):
    def test_empty_shop_reports_zeros(self):
        stats = services.get_shop_stats(self.shop)
        self.assertEqual(stats['totalBookings'], 0)
        self.assertEqual(stats['completedBookings'], 0)
        self.assertEqual(stats['activeBookings'], 0)
        self.assertEqual(stats['totalRevenue'], 0)
        self.assertEqual(stats['totalDistance'], 0)
        self.assertEqual(stats['totalVehicles'], 1)
        self.assertEqual(stats['availableVehicles'], 1)

    def test_rollups(self):
        make_vehicle(self.shop, name='Spare', available=False)
        paid = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        services.settle_booking(paid)
        services.record_odometer(paid.pk, self.as_owner, start_odo_km=100, end_odo_km=180)

        confirmed = self.book('2024-02-01T10:00', '2024-02-02T10:00')
        services.update_booking_status(confirmed.pk, Booking.CONFIRMED, self.as_owner)

        self.book('2024-03-01T10:00', '2024-03-02T10:00')

        stats = services.get_shop_stats(self.shop)
        self.assertEqual(stats['totalBookings'], 3)
        self.assertEqual(stats['completedBookings'], 1)
        self.assertEqual(stats['activeBookings'], 1)
        self.assertEqual(stats['totalRevenue'], Decimal('1000'))
        self.assertEqual(stats['totalDistance'], 80)
        self.assertEqual(stats['totalVehicles'], 2)
        self.assertEqual(stats['availableVehicles'], 1)


class BookingApiTests(BookingServiceTestBase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def create_via_api(self, **overrides):
        payload = {
            'vehicleId': self.vehicle.pk,
            'startDate': '2024-01-01T10:00:00Z',
            'endDate': '2024-01-03T10:00:00Z',
            'rentalType': 'daily',
            'customerNotes': 'Need a helmet',
        }
        payload.update(overrides)
        self.client.force_authenticate(user=self.customer)
        return self.client.post(reverse('booking-list'), payload, format='json')

    def test_create_booking(self):
        response = self.create_via_api()
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['total_days'], 2)
        self.assertEqual(Decimal(body['data']['total_amount']), Decimal('1000'))
        self.assertEqual(body['data']['vehicle']['id'], self.vehicle.pk)
        self.assertEqual(body['data']['shop']['id'], self.shop.pk)
        self.assertEqual(body['data']['customer_notes'], 'Need a helmet')

    def test_shop_owner_cannot_create_booking(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(reverse('booking-list'), {
            'vehicleId': self.vehicle.pk,
            'startDate': '2024-01-01T10:00:00Z',
            'endDate': '2024-01-03T10:00:00Z',
        }, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()['success'])

    def test_hourly_without_rate_returns_error_envelope(self):
        self.vehicle.hourly_rent_inr = None
        self.vehicle.save()
        response = self.create_via_api(rentalType='hourly')
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body['success'])
        self.assertEqual(body['code'], 'invalid_request')
        self.assertIn('Hourly rental not available', body['message'])

    def test_conflict_returns_409(self):
        booking = self.book()
        services.update_booking_status(booking.pk, Booking.CONFIRMED, self.as_owner)
        response = self.create_via_api()
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['code'], 'date_conflict')

    def test_missing_vehicle_returns_404(self):
        response = self.create_via_api(vehicleId=987654)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['message'], 'Vehicle not found')

    def test_my_bookings(self):
        self.book()
        self.book(principal=self.as_other_customer)
        self.client.force_authenticate(user=self.customer)
        response = self.client.get(reverse('booking-my'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['count'], 1)

    def test_shop_bookings_with_status_filter(self):
        first = self.book()
        self.book('2024-02-01T10:00', '2024-02-02T10:00')
        services.update_booking_status(first.pk, Booking.CONFIRMED, self.as_owner)
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse('booking-shop'), {'status': 'confirmed'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['count'], 1)
        self.assertEqual(response.json()['data'][0]['id'], first.pk)

    def test_shop_bookings_without_shop(self):
        lonely = make_user('lonely@shop.com', role='shop_owner')
        self.client.force_authenticate(user=lonely)
        response = self.client.get(reverse('booking-shop'))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['message'], 'No shop found for this user')

    def test_all_bookings_is_admin_only(self):
        self.book()
        self.client.force_authenticate(user=self.customer)
        self.assertEqual(self.client.get(reverse('booking-all')).status_code, 403)
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse('booking-all'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['count'], 1)

    def test_retrieve_permissions(self):
        booking = self.book()
        url = reverse('booking-detail', args=[booking.pk])
        for user, expected in ((self.customer, 200), (self.owner, 200), (self.admin, 200),
                               (self.other_customer, 403), (self.other_owner, 403)):
            self.client.force_authenticate(user=user)
            self.assertEqual(self.client.get(url).status_code, expected, user.email)

    def test_update_status_endpoint(self):
        booking = self.book()
        self.client.force_authenticate(user=self.owner)
        url = reverse('booking-update-status', args=[booking.pk])
        response = self.client.put(url, {'status': 'confirmed'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['status'], 'confirmed')

        response = self.client.put(url, {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'invalid_transition')

    def test_update_status_endpoint_refuses_double_booking(self):
        first = self.book('2024-01-01T10:00', '2024-01-03T10:00')
        second = self.book('2024-01-02T10:00', '2024-01-04T10:00', principal=self.as_other_customer)
        self.client.force_authenticate(user=self.owner)
        self.client.put(reverse('booking-update-status', args=[first.pk]), {'status': 'confirmed'}, format='json')

        response = self.client.put(reverse('booking-update-status', args=[second.pk]), {'status': 'confirmed'}, format='json')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['code'], 'date_conflict')

    def test_record_odometer_endpoint(self):
        booking = self.book()
        self.client.force_authenticate(user=self.owner)
        url = reverse('booking-record-odometer', args=[booking.pk])
        self.assertEqual(self.client.put(url, {'startOdoKm': 10000}, format='json').status_code, 200)
        response = self.client.put(url, {'endOdoKm': 10150}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['distance_travelled_km'], 150)
        self.assertEqual(response.json()['data']['status'], 'completed')
        self.assertEqual(Vehicle.objects.get(pk=self.vehicle.pk).total_distance_traveled_km, 150)

    def test_cancel_endpoint(self):
        booking = self.book()
        self.client.force_authenticate(user=self.customer)
        url = reverse('booking-cancel', args=[booking.pk])
        self.assertEqual(self.client.put(url).status_code, 200)
        response = self.client.put(url)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Cannot cancel booking with status: cancelled')

    def test_stats_endpoint(self):
        self.book()
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse('booking-stats'))
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['totalBookings'], 1)
        self.assertEqual(data['totalVehicles'], 1)

    def test_unauthenticated_request_is_rejected(self):
        response = self.client.get(reverse('booking-my'))
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()['success'])
