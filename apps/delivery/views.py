from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .exceptions import (
    DeliveryServiceError,
    DeliveryValidationError,
    DriverNotFoundError,
    DeliveryTaskNotFoundError,
    DeliveryNotAuthorizedError,
    DeliveryConflictError,
)
from .serializers import (
    DriverInputSerializer,
    DriverFilterSerializer,
    AssignDriverInputSerializer,
    CompleteDeliveryInputSerializer,
    DriverSerializer,
    DeliveryTaskSerializer,
)
from .services import (
    register_driver,
    drivers_for,
    tasks_for,
    assign_driver,
    mark_picked_up,
    complete_delivery,
)


def service_error_response(e):
    if isinstance(e, DeliveryValidationError):
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(e, (DriverNotFoundError, DeliveryTaskNotFoundError)):
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(e, DeliveryNotAuthorizedError):
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(e, DeliveryConflictError):
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)


class DeliveryPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class DriverViewSet(viewsets.ReadOnlyModelViewSet):
    """
    The current seller's drivers.

    list: Drivers, filterable by ?status=AVAILABLE|BUSY
    create: Register a driver
    """

    serializer_class = DriverSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = DeliveryPagination

    def get_queryset(self):
        filter_serializer = DriverFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        return drivers_for(self.request.user, status=filter_serializer.validated_data.get('status'))

    @extend_schema(request=DriverInputSerializer, responses={201: DriverSerializer}, tags=['delivery'])
    def create(self, request, *args, **kwargs):
        serializer = DriverInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            driver = register_driver(actor=request.user, **serializer.validated_data)
        except DeliveryServiceError as e:
            return service_error_response(e)

        return Response(DriverSerializer(driver).data, status=status.HTTP_201_CREATED)


class DeliveryTaskViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Delivery tasks.

    list: Tasks of the seller's drivers, or of the customer's orders
    create: Assign a driver to a home-delivery order
    pickup: Driver collected the goods
    complete: Hand-over confirmed with the customer's OTP
    """

    serializer_class = DeliveryTaskSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = DeliveryPagination

    def get_queryset(self):
        return tasks_for(self.request.user)

    @extend_schema(request=AssignDriverInputSerializer, responses={201: DeliveryTaskSerializer}, tags=['delivery'])
    def create(self, request, *args, **kwargs):
        serializer = AssignDriverInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            task = assign_driver(actor=request.user, **serializer.validated_data)
        except DeliveryServiceError as e:
            return service_error_response(e)

        return Response(DeliveryTaskSerializer(task).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={200: DeliveryTaskSerializer}, tags=['delivery'])
    @action(detail=True, methods=['post'])
    def pickup(self, request, pk=None):
        try:
            task = mark_picked_up(actor=request.user, task_id=pk)
        except DeliveryServiceError as e:
            return service_error_response(e)
        return Response(DeliveryTaskSerializer(task).data)

    @extend_schema(request=CompleteDeliveryInputSerializer, responses={200: DeliveryTaskSerializer}, tags=['delivery'])
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        serializer = CompleteDeliveryInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            task = complete_delivery(actor=request.user, task_id=pk, otp=serializer.validated_data['otp'])
        except DeliveryServiceError as e:
            return service_error_response(e)
        return Response(DeliveryTaskSerializer(task).data)
