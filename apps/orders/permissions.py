from rest_framework import permissions


class IsSeller(permissions.BasePermission):
    """Vendors, pharmacies and platform admins."""

    message = 'Only sellers can manage vendor orders.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_seller or user.is_platform_admin))
