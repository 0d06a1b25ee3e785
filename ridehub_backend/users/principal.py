from dataclasses import dataclass

from .models import User


@dataclass(frozen=True)
class Principal:
    """The caller of a domain operation: who they are and which role they act in."""
    user_id: int
    role: str

    @classmethod
    def from_user(cls, user):
        role = User.ADMIN if user.is_superuser else user.role
        return cls(user_id=user.pk, role=role)

    @property
    def is_admin(self):
        return self.role == User.ADMIN

    @property
    def is_shop_owner(self):
        return self.role == User.SHOP_OWNER

    @property
    def is_customer(self):
        return self.role == User.CUSTOMER
