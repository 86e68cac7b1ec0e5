"""
Custom permission classes for analytics app.

Permission Classes:
    CanViewSalesReports - Sellers, sales reps and admins

Usage:
    from apps.analytics.permissions import CanViewSalesReports

    @api_view(['GET'])
    @permission_classes([IsAuthenticated, CanViewSalesReports])
    def sales_report(request):
        ...
"""

from rest_framework.permissions import BasePermission
from apps.accounts.models import UserRole


class CanViewSalesReports(BasePermission):
    """
    Sales reports are for the people who sell.

    Vendors and pharmacies see their own vendor orders, sales reps the
    orders they placed, admins everything. Customers are refused.
    """

    message = 'Sales reports are available to vendors, pharmacies, sales reps and admins.'

    def has_permission(self, request, view):
        user = request.user
        return user.is_platform_admin or user.is_seller or user.role == UserRole.SALES_REP
