from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .serializers import (
    CheckoutInputSerializer,
    RejectPaymentInputSerializer,
    ResubmitPaymentInputSerializer,
    CancelOrderInputSerializer,
    VendorOrderFilterSerializer,
    SyncInputSerializer,
    OrderSerializer,
    OrderListSerializer,
    VendorOrderSerializer,
    QueuedOrderSerializer,
)
from .permissions import IsSeller

from apps.orders.services import (
    place_order,
    visible_orders,
    vendor_orders_for,
    cancel_order,
    verify_vendor_payment,
    reject_vendor_payment,
    resubmit_vendor_payment,
    mark_vendor_order_delivered,
    queue_order,
    replay_queued_order,
    # Exceptions
    OrdersServiceError,
    OrderValidationError,
    OrderNotFoundError,
    VendorOrderNotFoundError,
    QueuedOrderNotFoundError,
    NotAuthorizedError,
    InvalidTransitionError,
    PartialCheckoutError,
)
from apps.payments.services import (
    vendor_payments_from_data,
    PaymentsServiceError,
    PaymentValidationError,
    IncompletePaymentError,
    AlreadyResolvedError,
    NotAuthorizedError as PaymentNotAuthorizedError,
)
from config.logging import get_logger

logger = get_logger(__name__)


def service_error_response(e):
    """Map an orders or payments service error to an HTTP response."""
    if isinstance(e, PartialCheckoutError):
        return Response({
            'error': str(e),
            'code': 'partial_checkout',
            'order_id': str(e.order_id),
            'failed_vendor_id': str(e.failed_vendor_id),
            'created_vendor_order_ids': [str(i) for i in e.created_vendor_order_ids],
        }, status=status.HTTP_409_CONFLICT)
    if isinstance(e, IncompletePaymentError):
        return Response(
            {'error': str(e), 'code': 'incomplete_payment', 'vendor_ids': e.vendor_ids},
            status=status.HTTP_400_BAD_REQUEST
        )
    if isinstance(e, (OrderValidationError, PaymentValidationError)):
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(e, (OrderNotFoundError, VendorOrderNotFoundError, QueuedOrderNotFoundError)):
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(e, (NotAuthorizedError, PaymentNotAuthorizedError)):
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(e, (InvalidTransitionError, AlreadyResolvedError)):
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)


class OrderPagination(PageNumberPagination):
    """Custom pagination for orders."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Orders visible to the current user. Cancelled orders are not listed.

    list: Orders placed, received or (for sellers) containing the seller's goods
    retrieve: One order with its vendor orders
    create: Checkout
    cancel: Cancel and void an open order
    """

    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = OrderPagination

    def get_queryset(self):
        return visible_orders(self.request.user)

    def get_serializer_class(self):
        if self.action == 'list':
            return OrderListSerializer
        return OrderSerializer

    @extend_schema(request=CheckoutInputSerializer, responses={201: OrderSerializer}, tags=['orders'])
    def create(self, request, *args, **kwargs):
        """Place a multi-vendor order."""
        serializer = CheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            order = place_order(
                actor=request.user,
                cart=data['cart'],
                payments=vendor_payments_from_data(data['payments']),
                customer_name=data['customer_name'],
                customer_phone=data['customer_phone'],
                delivery_type=data['delivery_type'],
                delivery_address=data['delivery_address'],
                distance_km=data.get('distance_km'),
                channel=data['channel'],
                branch_id=data['branch_id'],
                client_reference=data.get('client_reference'),
            )
        except (OrdersServiceError, PaymentsServiceError) as e:
            return service_error_response(e)

        order = visible_orders(request.user).filter(id=order.id).first() or order
        output_serializer = OrderSerializer(order, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @extend_schema(request=CancelOrderInputSerializer, responses={200: OrderSerializer}, tags=['orders'])
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel an order that hasn't been delivered."""
        serializer = CancelOrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = cancel_order(
                actor=request.user,
                order_id=pk,
                reason=serializer.validated_data['reason'],
            )
        except OrdersServiceError as e:
            return service_error_response(e)

        return Response(OrderSerializer(order, context={'request': request}).data)


class VendorOrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    The seller's share of orders and the payment verification actions.

    list: Vendor orders for the current seller (filter with ?payment_status=)
    verify: Accept the submitted payment reference
    reject: Reject the reference with a reason
    resubmit: Customer submits a new reference after a rejection
    deliver: Hand a paid self-pickup order to the customer
    """

    serializer_class = VendorOrderSerializer
    permission_classes = [IsAuthenticated, IsSeller]
    pagination_class = OrderPagination

    def get_permissions(self):
        if self.action == 'resubmit':
            return [IsAuthenticated()]
        return super().get_permissions()

    def get_queryset(self):
        filter_serializer = VendorOrderFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        return vendor_orders_for(
            self.request.user,
            payment_status=filter_serializer.validated_data.get('payment_status'),
        )

    def _respond(self, service, **kwargs):
        try:
            vendor_order = service(actor=self.request.user, vendor_order_id=self.kwargs['pk'], **kwargs)
        except (OrdersServiceError, PaymentsServiceError) as e:
            return service_error_response(e)
        return Response(VendorOrderSerializer(vendor_order).data)

    @extend_schema(request=None, responses={200: VendorOrderSerializer}, tags=['orders'])
    @action(detail=True, methods=['post'])
    def verify(self, request, pk=None):
        return self._respond(verify_vendor_payment)

    @extend_schema(request=RejectPaymentInputSerializer, responses={200: VendorOrderSerializer}, tags=['orders'])
    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        serializer = RejectPaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(reject_vendor_payment, reason=serializer.validated_data['reason'])

    @extend_schema(request=ResubmitPaymentInputSerializer, responses={200: VendorOrderSerializer}, tags=['orders'])
    @action(detail=True, methods=['post'])
    def resubmit(self, request, pk=None):
        serializer = ResubmitPaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(resubmit_vendor_payment, **serializer.validated_data)

    @extend_schema(request=None, responses={200: VendorOrderSerializer}, tags=['orders'])
    @action(detail=True, methods=['post'])
    def deliver(self, request, pk=None):
        return self._respond(mark_vendor_order_delivered)


@extend_schema(
    request=SyncInputSerializer,
    responses={200: QueuedOrderSerializer(many=True)},
    description="Queue and replay orders captured while the client was offline. "
                "Replaying the same temp_id again never creates a second order.",
    tags=['orders'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sync_orders(request):
    """Accept a batch of offline orders and replay each one."""
    serializer = SyncInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    results = []
    for entry in serializer.validated_data['orders']:
        try:
            queued = queue_order(
                actor=request.user,
                temp_id=entry['temp_id'],
                payload=entry['payload'],
            )
        except OrdersServiceError as e:
            results.append({'temp_id': entry['temp_id'], 'status': 'failed', 'error': str(e)})
            continue

        if queued.queued_by_id != request.user.id:
            results.append({
                'temp_id': queued.temp_id,
                'status': 'failed',
                'error': 'temp_id already used by another user',
            })
            continue

        try:
            replay_queued_order(queued)
            error = None
        except (OrdersServiceError, PaymentsServiceError) as e:
            error = str(e)
        queued.refresh_from_db()
        results.append({**QueuedOrderSerializer(queued).data, 'error': error})

    logger.info("Sync request from {}: {} offline orders", request.user.id, len(results))
    return Response({'results': results})
