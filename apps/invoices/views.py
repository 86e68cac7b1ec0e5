from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from apps.accounts.models import User

from .exceptions import (
    InvoiceServiceError,
    InvoiceValidationError,
    InvalidInvoiceTransitionError,
)
from .serializers import (
    InvoiceCreateSerializer,
    InvoiceFilterSerializer,
    InvoiceSerializer,
    InvoiceListSerializer,
)
from .services import (
    create_invoice,
    list_invoices,
    send_invoice,
    mark_invoice_paid,
    cancel_invoice,
)


def service_error_response(e):
    if isinstance(e, InvalidInvoiceTransitionError):
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)


class InvoicePagination(PageNumberPagination):
    """Custom pagination for invoices."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Invoices issued by the current user.

    list: Own invoices, filterable by ?status=
    create: Issue a draft invoice
    retrieve: One invoice with its items
    send / mark_paid / cancel: Status transitions
    """

    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = InvoicePagination

    def get_queryset(self):
        filter_serializer = InvoiceFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        return list_invoices(
            owner=self.request.user,
            status=filter_serializer.validated_data.get('status'),
        )

    def get_serializer_class(self):
        if self.action == 'list':
            return InvoiceListSerializer
        return InvoiceSerializer

    @extend_schema(request=InvoiceCreateSerializer, responses={201: InvoiceSerializer}, tags=['invoices'])
    def create(self, request, *args, **kwargs):
        serializer = InvoiceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        customer_id = data.pop('customer', None)
        customer = None
        if customer_id:
            customer = User.objects.filter(id=customer_id).first()
            if customer is None:
                return Response({'error': 'Customer not found'}, status=status.HTTP_404_NOT_FOUND)

        try:
            invoice = create_invoice(owner=request.user, customer=customer, **data)
        except InvoiceValidationError as e:
            return service_error_response(e)

        invoice = list_invoices(owner=request.user).get(id=invoice.id)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    def _transition(self, service, pk):
        try:
            invoice = service(actor=self.request.user, invoice_id=pk)
        except InvoiceServiceError as e:
            return service_error_response(e)
        return Response(InvoiceSerializer(invoice).data)

    @extend_schema(request=None, responses={200: InvoiceSerializer}, tags=['invoices'])
    @action(detail=True, methods=['post'])
    def send(self, request, pk=None):
        return self._transition(send_invoice, pk)

    @extend_schema(request=None, responses={200: InvoiceSerializer}, tags=['invoices'])
    @action(detail=True, methods=['post'], url_path='mark-paid')
    def mark_paid(self, request, pk=None):
        return self._transition(mark_invoice_paid, pk)

    @extend_schema(request=None, responses={200: InvoiceSerializer}, tags=['invoices'])
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        return self._transition(cancel_invoice, pk)
