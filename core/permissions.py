from rest_framework.permissions import BasePermission, SAFE_METHODS

from core.errors import PermissionDenied


class IsStaffOrReadOnly(BasePermission):
    """
    Read: any authenticated user
    Write: staff only
    """
    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return bool(request.user.is_staff)


class IsStaffOnly(BasePermission):
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_staff)


class IsProviderOrStaff(BasePermission):
    """
    Provider-owned records (objects with a provider_id).
    Write: the provider itself or staff.
    Read: the same, unless the view sets public_read = True.
    """
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS and getattr(view, "public_read", False):
            return True
        return bool(request.user.is_staff or obj.provider_id == request.user.get_username())


def ensure_acting_for(request, provider_id):
    """Non-staff users may only create or move records for themselves."""
    if request.user.is_staff:
        return
    if provider_id != request.user.get_username():
        raise PermissionDenied("You can only manage your own records.")
