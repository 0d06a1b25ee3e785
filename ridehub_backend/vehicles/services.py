import logging

from django.db import transaction

from bookings.models import Booking
from ridehub_backend.exceptions import InvalidState, Unauthorized
from shops.services import get_shop_for_owner

logger = logging.getLogger(__name__)


def shop_for_new_vehicle(principal):
    return get_shop_for_owner(principal, message='Please create a shop first before adding vehicles')


def ensure_can_manage_vehicle(vehicle, principal, action='update'):
    if principal.is_admin or vehicle.shop.owner_id == principal.user_id:
        return
    raise Unauthorized(f'Not authorized to {action} this vehicle')


@transaction.atomic
def delete_vehicle(vehicle, principal):
    ensure_can_manage_vehicle(vehicle, principal, action='delete')
    active = Booking.objects.filter(vehicle=vehicle, status__in=Booking.BLOCKING_STATUSES).count()
    if active:
        raise InvalidState('Cannot delete vehicle with active bookings')
    vehicle_id = vehicle.pk
    removed, _ = Booking.objects.filter(vehicle=vehicle).delete()
    vehicle.delete()
    logger.info("Vehicle %s deleted by user %s (%s booking rows removed)", vehicle_id, principal.user_id, removed)
