from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'invoices'

router = SimpleRouter()
router.register(r'', views.InvoiceViewSet, basename='invoice')

urlpatterns = [
    # GET    /api/invoices/                  - List own invoices (?status=)
    # POST   /api/invoices/                  - Create draft invoice
    # GET    /api/invoices/{id}/             - Invoice details
    # POST   /api/invoices/{id}/send/        - Draft -> sent
    # POST   /api/invoices/{id}/mark-paid/   - Sent/overdue -> paid
    # POST   /api/invoices/{id}/cancel/      - Cancel an unpaid invoice
    path('', include(router.urls)),
]
