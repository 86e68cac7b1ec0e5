from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'orders'

router = SimpleRouter()
router.register(r'vendor-orders', views.VendorOrderViewSet, basename='vendor-order')
router.register(r'', views.OrderViewSet, basename='order')

urlpatterns = [
    # GET    /api/orders/                               - List visible orders
    # POST   /api/orders/                               - Checkout
    # GET    /api/orders/{id}/                          - Order detail
    # POST   /api/orders/{id}/cancel/                   - Cancel and void
    # GET    /api/orders/vendor-orders/                 - Seller's vendor orders
    # POST   /api/orders/vendor-orders/{id}/verify/     - Accept payment
    # POST   /api/orders/vendor-orders/{id}/reject/     - Reject payment
    # POST   /api/orders/vendor-orders/{id}/resubmit/   - New reference after rejection
    # POST   /api/orders/vendor-orders/{id}/deliver/    - Self-pickup hand-over
    path('sync/', views.sync_orders, name='sync'),

    path('', include(router.urls)),
]
