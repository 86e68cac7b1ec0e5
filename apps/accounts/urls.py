from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from . import views

app_name = 'accounts'

urlpatterns = [
    path('register/', views.register, name='register'),
    path('login/', views.login, name='login'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('me/', views.current_user, name='me'),
    path('me/subscription/', views.subscription_state, name='subscription'),
    path('me/payment-config/', views.payment_config, name='payment-config'),
]
