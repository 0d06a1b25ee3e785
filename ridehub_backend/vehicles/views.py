import logging

from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from bookings.services import check_availability
from shops.services import get_shop_for_owner
from users.permissions import IsShopOwner, IsShopOwnerOnly
from users.principal import Principal
from .filters import VehicleFilter
from .models import Vehicle
from .serializers import AvailabilityQuerySerializer, VehicleSerializer
from .services import delete_vehicle, ensure_can_manage_vehicle, shop_for_new_vehicle

logger = logging.getLogger(__name__)


class VehicleViewSet(viewsets.ModelViewSet):
    queryset = Vehicle.objects.select_related('shop').all()
    serializer_class = VehicleSerializer
    filterset_class = VehicleFilter

    def get_permissions(self):
        if self.action in ['list', 'retrieve', 'check_availability']:
            return [permissions.AllowAny()]
        if self.action == 'mine':
            return [IsShopOwnerOnly()]
        return [IsShopOwner()]

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        serializer = self.get_serializer(queryset, many=True)
        return Response({'success': True, 'count': len(serializer.data), 'data': serializer.data})

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': self.get_serializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):
        shop = shop_for_new_vehicle(Principal.from_user(request.user))
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vehicle = serializer.save(shop=shop)
        logger.info("Vehicle %s added to shop %s", vehicle.pk, shop.pk)
        return Response({'success': True, 'data': self.get_serializer(vehicle).data}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        vehicle = self.get_object()
        ensure_can_manage_vehicle(vehicle, Principal.from_user(request.user))
        serializer = self.get_serializer(vehicle, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'data': serializer.data})

    def destroy(self, request, *args, **kwargs):
        delete_vehicle(self.get_object(), Principal.from_user(request.user))
        return Response({'success': True, 'data': {}, 'message': 'Vehicle and associated data deleted successfully'})

    @action(detail=False, methods=['get'])
    def mine(self, request):
        shop = get_shop_for_owner(Principal.from_user(request.user))
        vehicles = Vehicle.objects.filter(shop=shop)
        serializer = self.get_serializer(vehicles, many=True)
        return Response({'success': True, 'count': len(serializer.data), 'data': serializer.data})

    @action(detail=True, methods=['post'], url_path='check-availability')
    def check_availability(self, request, pk=None):
        vehicle = self.get_object()
        query = AvailabilityQuerySerializer(data=request.data)
        query.is_valid(raise_exception=True)
        available, message = check_availability(
            vehicle, query.validated_data['startDate'], query.validated_data['endDate'],
        )
        return Response({'success': True, 'available': available, 'message': message})
