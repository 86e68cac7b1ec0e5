from django.db import models
import uuid


class DriverStatus(models.TextChoices):
    AVAILABLE = 'AVAILABLE', 'Available'
    BUSY = 'BUSY', 'Busy'


class DeliveryTaskStatus(models.TextChoices):
    ASSIGNED = 'ASSIGNED', 'Assigned'
    PICKED_UP = 'PICKED_UP', 'Picked Up'
    DELIVERED = 'DELIVERED', 'Delivered'
    CANCELLED = 'CANCELLED', 'Cancelled'


class Driver(models.Model):
    """A delivery rider working for a vendor (or for the platform when owned by an admin)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='drivers'
    )
    name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20)
    plate_number = models.CharField(max_length=20, blank=True)

    status = models.CharField(
        max_length=20,
        choices=DriverStatus.choices,
        default=DriverStatus.AVAILABLE
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'drivers'
        indexes = [
            models.Index(fields=['owner', 'status'], name='drivers_owner_status_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.plate_number or self.phone})"


class DeliveryTask(models.Model):
    """
    A driver carrying one home-delivery order.

    At most one task exists per order. The task finishes when the driver
    enters the customer's delivery OTP.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.OneToOneField(
        'orders.Order',
        on_delete=models.CASCADE,
        related_name='delivery_task'
    )
    driver = models.ForeignKey(
        Driver,
        on_delete=models.PROTECT,
        related_name='tasks'
    )
    assigned_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='assigned_deliveries'
    )

    status = models.CharField(
        max_length=20,
        choices=DeliveryTaskStatus.choices,
        default=DeliveryTaskStatus.ASSIGNED
    )
    assigned_at = models.DateTimeField(auto_now_add=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'delivery_tasks'
        indexes = [
            models.Index(fields=['driver', 'status'], name='tasks_driver_status_idx'),
        ]
        ordering = ['-assigned_at']

    def __str__(self):
        return f"Delivery of {self.order_id} by {self.driver.name} ({self.status})"
