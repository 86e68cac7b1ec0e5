from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'delivery'

router = SimpleRouter()
router.register(r'drivers', views.DriverViewSet, basename='driver')
router.register(r'tasks', views.DeliveryTaskViewSet, basename='task')

urlpatterns = [
    # GET    /api/delivery/drivers/               - List own drivers
    # POST   /api/delivery/drivers/               - Register a driver
    # GET    /api/delivery/tasks/                 - List delivery tasks
    # POST   /api/delivery/tasks/                 - Assign a driver to an order
    # POST   /api/delivery/tasks/{id}/pickup/     - Goods collected
    # POST   /api/delivery/tasks/{id}/complete/   - Hand-over with OTP
    path('', include(router.urls)),
]
