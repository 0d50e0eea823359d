"""Role lookup for authenticated users."""

from rest_framework.permissions import BasePermission

SUPER_ADMIN = "SUPER_ADMIN"
ADMIN = "ADMIN"
STAFF = "STAFF"


def role_for(user) -> str | None:
    if user is None or not user.is_authenticated:
        return None
    if user.is_superuser:
        return SUPER_ADMIN
    if user.is_staff:
        return ADMIN
    return STAFF


class IsAdmin(BasePermission):
    def has_permission(self, request, view) -> bool:
        return role_for(request.user) in (ADMIN, SUPER_ADMIN)


class IsSuperAdmin(BasePermission):
    def has_permission(self, request, view) -> bool:
        return role_for(request.user) == SUPER_ADMIN
