from rest_framework import permissions


class IsPlatformAdmin(permissions.BasePermission):
    """Platform admins verify subscriptions, deposits and withdrawals."""

    message = 'Only platform admins can do this.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_platform_admin)
