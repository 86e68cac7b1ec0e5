from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsSellerOrReadOnly(BasePermission):
    """Only vendors and pharmacies may create products."""

    message = 'Only vendors and pharmacies can manage products.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return request.user.is_authenticated and request.user.is_seller


class IsProductOwner(BasePermission):
    """A product can only be changed by the vendor that owns it."""

    message = 'You can only manage your own products.'

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        return obj.vendor_id == request.user.id
