from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'payments'

router = SimpleRouter()
router.register(r'transactions', views.TransactionViewSet, basename='transaction')

urlpatterns = [
    # GET    /api/payments/transactions/                  - List transactions
    # POST   /api/payments/transactions/{id}/complete/    - Verify (vendor/admin)
    # POST   /api/payments/transactions/{id}/reject/      - Reject (vendor/admin)
    # POST   /api/payments/transactions/{id}/fail/        - Mark failed (vendor/admin)
    path('wallet/', views.wallet_summary, name='wallet'),
    path('wallet/deposit/', views.deposit, name='deposit'),
    path('wallet/withdraw/', views.withdraw, name='withdraw'),
    path('push/', views.push_payment, name='push'),
    path('vendors/<uuid:vendor_id>/providers/', views.vendor_providers, name='vendor-providers'),

    # Subscriptions
    path('packages/', views.subscription_packages, name='packages'),
    path('subscriptions/', views.submit_subscription, name='submit-subscription'),
    path('subscriptions/pending/', views.pending_confirmations, name='pending-confirmations'),
    path('subscriptions/<uuid:confirmation_id>/verify/', views.verify_subscription, name='verify-subscription'),
    path('subscriptions/<uuid:confirmation_id>/reject/', views.reject_subscription, name='reject-subscription'),

    path('', include(router.urls)),
]
