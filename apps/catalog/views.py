from uuid import UUID

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from rest_framework.pagination import PageNumberPagination

from .models import Product
from .permissions import IsSellerOrReadOnly, IsProductOwner
from .serializers import ProductSerializer


class ProductPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class ProductViewSet(viewsets.ModelViewSet):
    """
    Products offered by vendors.

    list/retrieve: anyone; active products only unless ?vendor=me
    create/update/destroy: the owning vendor
    """

    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticatedOrReadOnly, IsSellerOrReadOnly, IsProductOwner]
    pagination_class = ProductPagination

    def get_queryset(self):
        queryset = Product.objects.select_related('vendor')
        vendor = self.request.query_params.get('vendor')

        if vendor == 'me' and self.request.user.is_authenticated:
            return queryset.filter(vendor=self.request.user)
        if self.action in ('update', 'partial_update', 'destroy'):
            return queryset
        if vendor:
            try:
                queryset = queryset.filter(vendor_id=UUID(vendor))
            except ValueError:
                return queryset.none()
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(name__icontains=search)
        return queryset.filter(is_active=True)

    def perform_create(self, serializer):
        serializer.save(vendor=self.request.user)
