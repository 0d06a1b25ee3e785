from rest_framework.permissions import BasePermission

from .models import User


class HasRole(BasePermission):
    """Allow authenticated users whose role is in `allowed_roles`. Superusers always pass."""
    allowed_roles = ()
    message = 'User role is not authorized to access this route'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_superuser or user.role in self.allowed_roles


class IsCustomer(HasRole):
    allowed_roles = (User.CUSTOMER, User.ADMIN)


class IsShopOwner(HasRole):
    allowed_roles = (User.SHOP_OWNER, User.ADMIN)


class IsShopOwnerOnly(HasRole):
    allowed_roles = (User.SHOP_OWNER,)


class IsAdmin(HasRole):
    allowed_roles = (User.ADMIN,)
