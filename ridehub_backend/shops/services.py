import logging

from django.db import transaction

from ridehub_backend.exceptions import InvalidRequest, NotFound, Unauthorized
from .models import Shop

logger = logging.getLogger(__name__)


def get_shop_for_owner(principal, message='No shop found for this user'):
    shop = Shop.objects.filter(owner_id=principal.user_id).first()
    if shop is None:
        raise NotFound(message)
    return shop


def ensure_can_register_shop(principal):
    if Shop.objects.filter(owner_id=principal.user_id).exists():
        raise InvalidRequest('You already have a shop registered')


def ensure_can_manage_shop(shop, principal, action='update'):
    if not (shop.is_owned_by(principal) or principal.is_admin):
        raise Unauthorized(f'Not authorized to {action} this shop')


@transaction.atomic
def delete_shop(shop, principal):
    """Remove a shop together with its vehicles and every booking made against it."""
    ensure_can_manage_shop(shop, principal, action='delete')
    shop_id = shop.pk
    # bookings and payments cascade from the vehicle and shop rows
    vehicle_count = shop.vehicles.count()
    shop.delete()
    logger.info("Shop %s deleted by user %s with %s vehicles", shop_id, principal.user_id, vehicle_count)
