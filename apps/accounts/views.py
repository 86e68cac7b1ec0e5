from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema

from .serializers import (
    SignUpSerializer,
    SignInSerializer,
    UserSerializer,
    SubscriptionStateSerializer,
    PaymentConfigSerializer,
)
from .services import (
    register_user,
    authenticate_user,
    lapse_expired_subscription,
    update_payment_config,
    AccountsServiceError,
    InvalidCredentialsError,
    InactiveAccountError,
    NotAVendorError,
)


class SessionResponseSerializer(serializers.Serializer):
    user = UserSerializer()
    refresh = serializers.CharField()
    access = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


def account_error_response(e):
    """Map an accounts service error to an HTTP response."""
    if isinstance(e, InvalidCredentialsError):
        code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(e, (InactiveAccountError, NotAVendorError)):
        code = status.HTTP_403_FORBIDDEN
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(e)}, status=code)


def session_payload(user):
    """Profile plus a fresh JWT pair."""
    refresh = RefreshToken.for_user(user)
    return {
        'user': UserSerializer(user).data,
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


@extend_schema(
    request=SignUpSerializer,
    responses={201: SessionResponseSerializer, 400: ErrorResponseSerializer},
    description="Open a customer, sales rep, vendor or pharmacy account.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    serializer = SignUpSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = register_user(**serializer.validated_data)
    except AccountsServiceError as e:
        return account_error_response(e)

    return Response(session_payload(user), status=status.HTTP_201_CREATED)


@extend_schema(
    request=SignInSerializer,
    responses={
        200: SessionResponseSerializer,
        401: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
    },
    description="Exchange email and password for JWT tokens. Lapses an expired subscription.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    serializer = SignInSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = authenticate_user(**serializer.validated_data)
    except AccountsServiceError as e:
        return account_error_response(e)

    return Response(session_payload(user))


@extend_schema(
    methods=['GET'],
    responses={200: UserSerializer},
    description="Current user's profile, including subscription countdown.",
    tags=['auth'],
)
@extend_schema(
    methods=['PATCH'],
    request=UserSerializer,
    responses={200: UserSerializer},
    description="Change the current user's display name or phone.",
    tags=['auth'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def current_user(request):
    user = request.user
    if request.method == 'GET':
        lapse_expired_subscription(user)
        return Response(UserSerializer(user).data)

    serializer = UserSerializer(user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)


@extend_schema(
    responses={200: SubscriptionStateSerializer},
    description="Plan, expiry and days left for the current user's subscription.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def subscription_state(request):
    lapse_expired_subscription(request.user)
    return Response(SubscriptionStateSerializer(request.user).data)


@extend_schema(
    request=PaymentConfigSerializer,
    responses={
        200: PaymentConfigSerializer,
        400: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
    },
    description="Publish the mobile-money numbers and bank account customers pay into (vendors only).",
    tags=['auth'],
)
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def payment_config(request):
    if request.method == 'GET':
        return Response({'providers': request.user.payment_config})

    serializer = PaymentConfigSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        vendor = update_payment_config(
            vendor=request.user,
            config=serializer.validated_data['providers']
        )
    except AccountsServiceError as e:
        return account_error_response(e)

    return Response({'providers': vendor.payment_config})
