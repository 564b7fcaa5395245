"""
Role based permission classes.
"""
from django.conf import settings
from rest_framework.permissions import BasePermission, SAFE_METHODS


def role_name(user) -> str:
    role = getattr(user, 'role', None)
    return (getattr(role, 'name', '') or '').lower()


class IsAdminRole(BasePermission):
    """Allow access only to users holding an administrative role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        return bool(user.is_superuser or role_name(user) in settings.WARDS_ADMIN_ROLES)


class IsAdminOrReadOnly(IsAdminRole):
    """Any authenticated user may read; writes need an administrative role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if request.method in SAFE_METHODS:
            return bool(user and user.is_authenticated)
        return super().has_permission(request, view)
