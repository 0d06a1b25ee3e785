import logging
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, DecimalField, F, FloatField, Q, Sum, Value
from django.db.models.functions import Coalesce

from ridehub_backend.exceptions import (
    DateConflict, InvalidRequest, InvalidState, InvalidTransition, NotFound, Unauthorized, Unavailable,
)
from vehicles.models import Vehicle
from .models import Booking

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
ONE_HOUR = timedelta(hours=1)


def _ceil_units(delta, unit):
    return -((-delta) // unit)


def calculate_duration(start_date, end_date, rental_type):
    """
    Return (total_days, total_hours) for a rental window, both rounded up.
    total_hours is only filled in for hourly rentals.
    """
    if end_date <= start_date:
        raise InvalidRequest('End date must be after start date')
    delta = end_date - start_date
    total_days = _ceil_units(delta, ONE_DAY)
    total_hours = _ceil_units(delta, ONE_HOUR) if rental_type == Booking.HOURLY else 0
    return total_days, total_hours


def calculate_amount(vehicle, rental_type, total_days, total_hours):
    if rental_type == Booking.HOURLY:
        if not vehicle.supports_hourly:
            raise InvalidRequest('Hourly rental not available for this vehicle')
        return Decimal(total_hours) * vehicle.hourly_rent_inr
    return Decimal(total_days) * vehicle.daily_rent_inr


def find_conflicting_bookings(vehicle, start_date, end_date):
    """Confirmed or ongoing bookings whose window touches [start_date, end_date] (inclusive)."""
    return Booking.objects.filter(
        vehicle=vehicle,
        status__in=Booking.BLOCKING_STATUSES,
        start_date__lte=end_date,
        end_date__gte=start_date,
    )


def ensure_slot_free_for_confirmation(booking):
    """Lock the vehicle and refuse to confirm a booking that overlaps another confirmed or ongoing one."""
    Vehicle.objects.select_for_update().filter(pk=booking.vehicle_id).first()
    conflicts = find_conflicting_bookings(booking.vehicle_id, booking.start_date, booking.end_date).exclude(pk=booking.pk)
    if conflicts.exists():
        raise DateConflict('Vehicle is already booked for these dates')


def check_availability(vehicle, start_date, end_date):
    if not vehicle.available:
        return False, 'Vehicle is currently unavailable'
    if find_conflicting_bookings(vehicle, start_date, end_date).exists():
        return False, 'Vehicle is already booked for these dates'
    return True, 'Vehicle is available for booking'


def create_booking(principal, vehicle_id, start_date, end_date, rental_type=Booking.DAILY, customer_notes=''):
    rental_type = rental_type or Booking.DAILY
    with transaction.atomic():
        # the vehicle row lock serialises concurrent requests for the same vehicle
        vehicle = Vehicle.objects.select_for_update().filter(pk=vehicle_id).first()
        if vehicle is None:
            raise NotFound('Vehicle not found')
        if not vehicle.available:
            raise Unavailable('Vehicle is not available')
        if find_conflicting_bookings(vehicle, start_date, end_date).exists():
            raise DateConflict('Vehicle is already booked for these dates')

        total_days, total_hours = calculate_duration(start_date, end_date, rental_type)
        total_amount = calculate_amount(vehicle, rental_type, total_days, total_hours)

        booking = Booking.objects.create(
            user_id=principal.user_id,
            vehicle=vehicle,
            shop_id=vehicle.shop_id,
            start_date=start_date,
            end_date=end_date,
            rental_type=rental_type,
            total_days=total_days,
            total_hours=total_hours,
            total_amount=total_amount,
            customer_notes=customer_notes or '',
            status=Booking.PENDING,
            payment_status=Booking.PAYMENT_PENDING,
        )
    logger.info(
        "Booking %s created for vehicle %s by user %s (%s, amount=%s)",
        booking.pk, vehicle.pk, principal.user_id, rental_type, total_amount,
    )
    return booking


def booking_queryset():
    return Booking.objects.select_related('vehicle', 'shop', 'user')


def get_booking(booking_id, for_update=False):
    queryset = Booking.objects.select_for_update() if for_update else booking_queryset()
    booking = queryset.filter(pk=booking_id).first()
    if booking is None:
        raise NotFound('Booking not found')
    return booking


def is_shop_side(booking, principal):
    return principal.is_admin or booking.shop.owner_id == principal.user_id


def ensure_can_view(booking, principal):
    if booking.user_id == principal.user_id or is_shop_side(booking, principal):
        return
    raise Unauthorized('Not authorized to view this booking')


def update_booking_status(booking_id, new_status, principal):
    with transaction.atomic():
        booking = get_booking(booking_id, for_update=True)
        if not is_shop_side(booking, principal):
            raise Unauthorized('Not authorized to update this booking')
        if new_status not in dict(Booking.STATUS_CHOICES):
            raise InvalidRequest(f'Unknown booking status: {new_status}')
        if not booking.can_transition_to(new_status):
            raise InvalidTransition(f'Cannot change booking status from {booking.status} to {new_status}')
        if new_status == Booking.CONFIRMED:
            ensure_slot_free_for_confirmation(booking)
        old_status = booking.status
        booking.status = new_status
        booking.save(update_fields=['status', 'updated_at'])
    logger.info("Booking %s status %s -> %s by user %s", booking.pk, old_status, new_status, principal.user_id)
    return booking


def cancel_booking(booking_id, principal):
    with transaction.atomic():
        booking = get_booking(booking_id, for_update=True)
        if booking.user_id != principal.user_id and not principal.is_admin:
            raise Unauthorized('Not authorized to cancel this booking')
        if booking.status not in Booking.CANCELLABLE_STATUSES:
            raise InvalidState(f'Cannot cancel booking with status: {booking.status}')
        booking.status = Booking.CANCELLED
        booking.save(update_fields=['status', 'updated_at'])
    logger.info("Booking %s cancelled by user %s", booking.pk, principal.user_id)
    return booking


def _validate_reading(name, value):
    if value is None:
        return None
    if value < 0:
        raise InvalidRequest(f'{name} cannot be negative')
    return float(value)


def record_odometer(booking_id, principal, start_odo_km=None, end_odo_km=None):
    """
    Record the pickup and/or return odometer reading of a booking.
    A start reading puts the booking on the road, an end reading completes it
    and adds the distance to the vehicle's lifetime mileage.
    """
    start_odo_km = _validate_reading('startOdoKm', start_odo_km)
    end_odo_km = _validate_reading('endOdoKm', end_odo_km)
    if start_odo_km is None and end_odo_km is None:
        raise InvalidRequest('Provide startOdoKm and/or endOdoKm')

    with transaction.atomic():
        booking = get_booking(booking_id, for_update=True)
        if not is_shop_side(booking, principal):
            raise Unauthorized('Not authorized to update this booking')
        if booking.status in (Booking.CANCELLED, Booking.COMPLETED):
            raise InvalidState(f'Cannot record odometer for booking with status: {booking.status}')

        update_fields = ['status', 'updated_at']
        if start_odo_km is not None:
            booking.start_odo_km = start_odo_km
            booking.status = Booking.ONGOING
            update_fields.append('start_odo_km')

        if end_odo_km is not None:
            if booking.start_odo_km is None:
                raise InvalidRequest('Start odometer reading must be recorded first')
            if end_odo_km < booking.start_odo_km:
                raise InvalidRequest('End odometer reading cannot be less than the start reading')
            booking.end_odo_km = end_odo_km
            booking.distance_travelled_km = end_odo_km - booking.start_odo_km
            booking.status = Booking.COMPLETED
            update_fields += ['end_odo_km', 'distance_travelled_km']

            Vehicle.objects.filter(pk=booking.vehicle_id).update(
                total_distance_traveled_km=F('total_distance_traveled_km') + booking.distance_travelled_km,
                odo_reading_km=end_odo_km,
            )

        booking.save(update_fields=update_fields)

    if end_odo_km is not None:
        logger.info(
            "Booking %s completed, %.1f km added to vehicle %s",
            booking.pk, booking.distance_travelled_km, booking.vehicle_id,
        )
    else:
        logger.info("Booking %s started at %.1f km", booking.pk, booking.start_odo_km)
    return booking


@transaction.atomic
def settle_booking(booking):
    """
    Mark a booking as paid; a pending booking becomes confirmed.
    Cancelled bookings and bookings whose slot has since been confirmed for
    someone else are refused, leaving the caller's transaction to roll back.
    """
    if booking.status == Booking.CANCELLED:
        raise InvalidState(f'Cannot settle payment for booking with status: {booking.status}')
    if booking.status == Booking.PENDING:
        ensure_slot_free_for_confirmation(booking)
    booking.payment_status = Booking.PAYMENT_PAID
    if booking.status == Booking.PENDING:
        booking.status = Booking.CONFIRMED
    booking.save(update_fields=['payment_status', 'status', 'updated_at'])
    logger.info("Booking %s settled (status=%s)", booking.pk, booking.status)
    return booking


def get_shop_stats(shop):
    bookings = Booking.objects.filter(shop=shop).aggregate(
        totalBookings=Count('id'),
        completedBookings=Count('id', filter=Q(status=Booking.COMPLETED)),
        activeBookings=Count('id', filter=Q(status__in=Booking.BLOCKING_STATUSES)),
        totalRevenue=Coalesce(
            Sum('total_amount', filter=Q(payment_status=Booking.PAYMENT_PAID)),
            Value(Decimal('0')),
            output_field=DecimalField(max_digits=14, decimal_places=2),
        ),
        totalDistance=Coalesce(
            Sum('distance_travelled_km', filter=Q(status=Booking.COMPLETED)),
            Value(0.0),
            output_field=FloatField(),
        ),
    )
    vehicles = Vehicle.objects.filter(shop=shop).aggregate(
        totalVehicles=Count('id'),
        availableVehicles=Count('id', filter=Q(available=True)),
    )
    return {**bookings, **vehicles}
