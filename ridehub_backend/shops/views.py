import logging

from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from users.permissions import IsShopOwner, IsShopOwnerOnly
from users.principal import Principal
from .models import Shop
from .serializers import ShopSerializer
from .services import delete_shop, ensure_can_manage_shop, ensure_can_register_shop, get_shop_for_owner

logger = logging.getLogger(__name__)


class ShopViewSet(viewsets.ModelViewSet):
    serializer_class = ShopSerializer

    def get_queryset(self):
        queryset = Shop.objects.select_related('owner')
        if self.action == 'list':
            queryset = queryset.filter(is_active=True)
            city = self.request.query_params.get('city')
            if city:
                queryset = queryset.filter(city__icontains=city)
        return queryset

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            return [permissions.AllowAny()]
        if self.action == 'mine':
            return [IsShopOwnerOnly()]
        return [IsShopOwner()]

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'count': len(serializer.data), 'data': serializer.data})

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': self.get_serializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):
        principal = Principal.from_user(request.user)
        ensure_can_register_shop(principal)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shop = serializer.save(owner=request.user)
        logger.info("Shop %s created by user %s", shop.pk, request.user.pk)
        return Response({'success': True, 'data': self.get_serializer(shop).data}, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        shop = self.get_object()
        ensure_can_manage_shop(shop, Principal.from_user(request.user))
        serializer = self.get_serializer(shop, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'data': serializer.data})

    def destroy(self, request, *args, **kwargs):
        delete_shop(self.get_object(), Principal.from_user(request.user))
        return Response({'success': True, 'data': {}, 'message': 'Shop and all associated data deleted successfully'})

    @action(detail=False, methods=['get'], url_path='me')
    def mine(self, request):
        shop = get_shop_for_owner(Principal.from_user(request.user))
        return Response({'success': True, 'data': self.get_serializer(shop).data})
