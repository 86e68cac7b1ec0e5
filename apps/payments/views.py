from django.db.models import Q
from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from apps.accounts.models import User
from .models import SubscriptionPackage, Transaction, TransactionKind
from .permissions import IsPlatformAdmin
from .serializers import (
    DepositInputSerializer,
    WithdrawalInputSerializer,
    ResolutionInputSerializer,
    TransactionFilterSerializer,
    PushInputSerializer,
    SubscriptionPaymentInputSerializer,
    RejectConfirmationInputSerializer,
    TransactionSerializer,
    WalletSummarySerializer,
    PushOutcomeSerializer,
    SubscriptionPackageSerializer,
    PaymentConfirmationSerializer,
)

from apps.payments.services import (
    get_wallet_summary,
    request_deposit,
    request_withdrawal,
    complete_transaction,
    reject_transaction,
    fail_transaction,
    initiate_push_payment,
    available_providers,
    submit_subscription_payment,
    verify_subscription_payment,
    reject_subscription_payment,
    list_pending_confirmations,
    # Exceptions
    PaymentsServiceError,
    PaymentValidationError,
    InsufficientFundsError,
    AlreadyResolvedError,
    TransactionNotFoundError,
    ConfirmationNotFoundError,
    PackageNotFoundError,
    NotAuthorizedError,
)


def service_error_response(e):
    """Map a payments service error to an HTTP response."""
    if isinstance(e, InsufficientFundsError):
        return Response(
            {'error': str(e), 'code': 'insufficient_funds'},
            status=status.HTTP_400_BAD_REQUEST
        )
    if isinstance(e, PaymentValidationError):
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(e, (TransactionNotFoundError, ConfirmationNotFoundError, PackageNotFoundError)):
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(e, NotAuthorizedError):
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(e, AlreadyResolvedError):
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)


class PaymentsPagination(PageNumberPagination):
    """Custom pagination for payments."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class TransactionViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Transactions of the current user.

    list: Own transactions; ?received=true lists payments made to a vendor;
          admins see everything
    complete / reject / fail: Single-fire verification by the vendor (order
          payments) or an admin (everything)
    """

    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = PaymentsPagination

    def get_queryset(self):
        user = self.request.user
        filter_serializer = TransactionFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        queryset = Transaction.objects.select_related('user')
        if not user.is_platform_admin:
            if params.get('received'):
                queryset = queryset.filter(vendor=user, kind=TransactionKind.PAYMENT)
            else:
                queryset = queryset.filter(Q(user=user) | Q(vendor=user))

        if 'status' in params:
            queryset = queryset.filter(status=params['status'])
        if 'kind' in params:
            queryset = queryset.filter(kind=params['kind'])
        return queryset

    def _resolve(self, service, request, pk, note_arg):
        serializer = ResolutionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            txn = service(
                actor=request.user,
                transaction_id=pk,
                **{note_arg: serializer.validated_data['note']}
            )
        except PaymentsServiceError as e:
            return service_error_response(e)
        return Response(TransactionSerializer(txn).data)

    @extend_schema(request=ResolutionInputSerializer, responses={200: TransactionSerializer}, tags=['payments'])
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Confirm the money arrived. Deposits credit and withdrawals debit the wallet."""
        return self._resolve(complete_transaction, request, pk, 'note')

    @extend_schema(request=ResolutionInputSerializer, responses={200: TransactionSerializer}, tags=['payments'])
    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        return self._resolve(reject_transaction, request, pk, 'reason')

    @extend_schema(request=ResolutionInputSerializer, responses={200: TransactionSerializer}, tags=['payments'])
    @action(detail=True, methods=['post'])
    def fail(self, request, pk=None):
        return self._resolve(fail_transaction, request, pk, 'reason')


@extend_schema(responses={200: WalletSummarySerializer}, tags=['payments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wallet_summary(request):
    """Balance, available balance and pending amounts for the current user."""
    summary = get_wallet_summary(user=request.user)
    return Response(WalletSummarySerializer(summary).data)


@extend_schema(request=DepositInputSerializer, responses={201: TransactionSerializer}, tags=['payments'])
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def deposit(request):
    """Declare a deposit. The wallet is credited when an admin completes it."""
    serializer = DepositInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        txn = request_deposit(actor=request.user, **serializer.validated_data)
    except PaymentsServiceError as e:
        return service_error_response(e)
    return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(request=WithdrawalInputSerializer, responses={201: TransactionSerializer}, tags=['payments'])
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def withdraw(request):
    """Request a payout. Refused when it exceeds the available balance."""
    serializer = WithdrawalInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        txn = request_withdrawal(actor=request.user, **serializer.validated_data)
    except PaymentsServiceError as e:
        return service_error_response(e)
    return Response(TransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@extend_schema(request=PushInputSerializer, responses={200: PushOutcomeSerializer}, tags=['payments'])
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def push_payment(request):
    """
    Ask the provider to prompt the payer's phone.

    Always 200: when the prompt can't be sent the state is MANUAL_ENTRY and
    the payer pays out-of-band instead.
    """
    serializer = PushInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    outcome = initiate_push_payment(**serializer.validated_data)
    return Response(PushOutcomeSerializer(outcome).data)


@extend_schema(tags=['payments'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def vendor_providers(request, vendor_id):
    """Providers a vendor accepts, with the number to pay into."""
    try:
        vendor = User.objects.get(id=vendor_id, is_active=True)
    except User.DoesNotExist:
        return Response({'error': 'Vendor not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'vendor_id': str(vendor.id), 'providers': available_providers(vendor)})


@extend_schema(responses={200: SubscriptionPackageSerializer(many=True)}, tags=['subscriptions'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def subscription_packages(request):
    packages = SubscriptionPackage.objects.filter(is_active=True)
    return Response(SubscriptionPackageSerializer(packages, many=True).data)


@extend_schema(
    request=SubscriptionPaymentInputSerializer,
    responses={201: PaymentConfirmationSerializer},
    tags=['subscriptions'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def submit_subscription(request):
    """Submit the payment code for a subscription package."""
    serializer = SubscriptionPaymentInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        confirmation = submit_subscription_payment(actor=request.user, **serializer.validated_data)
    except PaymentsServiceError as e:
        return service_error_response(e)
    return Response(PaymentConfirmationSerializer(confirmation).data, status=status.HTTP_201_CREATED)


@extend_schema(responses={200: PaymentConfirmationSerializer(many=True)}, tags=['subscriptions'])
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def pending_confirmations(request):
    """Subscription payments awaiting an admin, oldest first."""
    confirmations = list_pending_confirmations()
    return Response(PaymentConfirmationSerializer(confirmations, many=True).data)


@extend_schema(request=None, responses={200: PaymentConfirmationSerializer}, tags=['subscriptions'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def verify_subscription(request, confirmation_id):
    try:
        confirmation = verify_subscription_payment(actor=request.user, confirmation_id=confirmation_id)
    except PaymentsServiceError as e:
        return service_error_response(e)
    return Response(PaymentConfirmationSerializer(confirmation).data)


@extend_schema(request=RejectConfirmationInputSerializer, responses={200: PaymentConfirmationSerializer}, tags=['subscriptions'])
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def reject_subscription(request, confirmation_id):
    serializer = RejectConfirmationInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        confirmation = reject_subscription_payment(
            actor=request.user,
            confirmation_id=confirmation_id,
            reason=serializer.validated_data['reason'],
        )
    except PaymentsServiceError as e:
        return service_error_response(e)
    return Response(PaymentConfirmationSerializer(confirmation).data)
