"""Root URL map: one ``/api/<app>/`` prefix per Django app."""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from config import views

API_APPS = [
    ('auth', 'apps.accounts.urls'),
    ('catalog', 'apps.catalog.urls'),
    ('orders', 'apps.orders.urls'),
    ('payments', 'apps.payments.urls'),
    ('invoices', 'apps.invoices.urls'),
    ('delivery', 'apps.delivery.urls'),
    ('analytics', 'apps.analytics.urls'),
]

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health/', views.health_check, name='health-check'),
    path('api/schema/', SpectacularAPIView.as_view(), name='api-schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='api-schema'), name='api-docs'),
] + [
    path(f'api/{prefix}/', include(module)) for prefix, module in API_APPS
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)

handler404 = 'config.views.not_found'
handler500 = 'config.views.server_error'
