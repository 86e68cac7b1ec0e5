from django.urls import path
from . import views

app_name = 'analytics'

urlpatterns = [
    # Sales report for the current seller / rep / admin
    path('sales/', views.sales_report, name='sales-report'),
]
