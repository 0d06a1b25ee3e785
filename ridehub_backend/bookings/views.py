from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from shops.models import Shop
from shops.services import get_shop_for_owner
from ridehub_backend.exceptions import NotFound
from users.permissions import IsAdmin, IsCustomer, IsShopOwner
from users.principal import Principal
from . import services
from .models import Booking
from .serializers import BookingCreateSerializer, BookingSerializer, BookingStatusSerializer, OdometerSerializer


def _envelope(data, many=False, **extra):
    body = {'success': True}
    if many:
        body['count'] = len(data)
    body['data'] = data
    body.update(extra)
    return body


class BookingViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Booking lifecycle endpoints:
    - customers create, list and cancel their bookings
    - shop owners confirm/advance bookings, record odometer readings and read stats
    - admins see everything
    """
    serializer_class = BookingSerializer
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        return services.booking_queryset()

    def get_permissions(self):
        if self.action in ['create', 'my', 'cancel']:
            return [IsCustomer()]
        if self.action in ['shop', 'stats', 'update_status', 'record_odometer']:
            return [IsShopOwner()]
        if self.action == 'all_bookings':
            return [IsAdmin()]
        return [permissions.IsAuthenticated()]

    def _principal(self):
        return Principal.from_user(self.request.user)

    def _shop_for_request(self, principal):
        shop_id = self.request.query_params.get('shopId')
        if shop_id and principal.is_admin:
            shop = Shop.objects.filter(pk=shop_id).first()
            if shop is None:
                raise NotFound('Shop not found')
            return shop
        return get_shop_for_owner(principal)

    def _detail(self, booking, status_code=status.HTTP_200_OK):
        booking = services.get_booking(booking.pk)
        return Response(_envelope(BookingSerializer(booking).data), status=status_code)

    def create(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = services.create_booking(
            self._principal(),
            vehicle_id=data['vehicleId'],
            start_date=data['startDate'],
            end_date=data['endDate'],
            rental_type=data['rentalType'],
            customer_notes=data['customerNotes'],
        )
        return self._detail(booking, status_code=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        booking = services.get_booking(pk)
        services.ensure_can_view(booking, self._principal())
        return Response(_envelope(BookingSerializer(booking).data))

    @action(detail=False, methods=['get'])
    def my(self, request):
        bookings = self.get_queryset().filter(user=request.user)
        return Response(_envelope(BookingSerializer(bookings, many=True).data, many=True))

    @action(detail=False, methods=['get'])
    def shop(self, request):
        shop = self._shop_for_request(self._principal())
        bookings = self.get_queryset().filter(shop=shop)
        status_filter = request.query_params.get('status')
        if status_filter:
            bookings = bookings.filter(status=status_filter)
        return Response(_envelope(BookingSerializer(bookings, many=True).data, many=True))

    @action(detail=False, methods=['get'], url_path='shop/stats')
    def stats(self, request):
        shop = self._shop_for_request(self._principal())
        return Response(_envelope(services.get_shop_stats(shop)))

    @action(detail=False, methods=['get'], url_path='all', url_name='all')
    def all_bookings(self, request):
        bookings = self.get_queryset()
        return Response(_envelope(BookingSerializer(bookings, many=True).data, many=True))

    @action(detail=True, methods=['put'], url_path='status')
    def update_status(self, request, pk=None):
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.update_booking_status(pk, serializer.validated_data['status'], self._principal())
        return self._detail(booking)

    @action(detail=True, methods=['put'], url_path='record-odo')
    def record_odometer(self, request, pk=None):
        serializer = OdometerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.record_odometer(
            pk,
            self._principal(),
            start_odo_km=serializer.validated_data.get('startOdoKm'),
            end_odo_km=serializer.validated_data.get('endOdoKm'),
        )
        return self._detail(booking)

    @action(detail=True, methods=['put'])
    def cancel(self, request, pk=None):
        booking = services.cancel_booking(pk, self._principal())
        return self._detail(booking)
