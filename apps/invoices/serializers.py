from decimal import Decimal

from rest_framework import serializers

from .models import Invoice, InvoiceItem, InvoiceStatus


# =============================================================================
# Input Serializers
# =============================================================================

class InvoiceItemInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'))


class InvoiceCreateSerializer(serializers.Serializer):
    """
    Validate input for creating an invoice.

    Fields:
        customer (UUID): Optional registered customer being billed
        customer_name (str): Name printed on the invoice
        items (list): Line items, at least one
        tax_rate (decimal): Percentage, defaults to 0
        discount (decimal): Flat amount off the total
        issue_date (date): Defaults to today
        due_date (date): Defaults to the configured payment terms after issue
    """

    customer = serializers.UUIDField(required=False, allow_null=True)
    customer_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    customer_email = serializers.EmailField(required=False, allow_blank=True, default='')
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    items = InvoiceItemInputSerializer(many=True)
    tax_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal('0.00'), required=False, default=Decimal('0.00')
    )
    discount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal('0.00'), required=False, default=Decimal('0.00')
    )
    issue_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False)
    payment_terms = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('At least one item is required')
        return value

    def validate(self, attrs):
        issue_date = attrs.get('issue_date')
        due_date = attrs.get('due_date')

        if issue_date and due_date and due_date < issue_date:
            raise serializers.ValidationError({
                'due_date': 'Due date must be on or after the issue date'
            })
        if not attrs.get('customer') and not attrs.get('customer_name'):
            raise serializers.ValidationError({
                'customer_name': 'Customer name is required'
            })

        return attrs


class InvoiceFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=InvoiceStatus.choices, required=False)


# =============================================================================
# Output Serializers
# =============================================================================

class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = ['id', 'name', 'quantity', 'price', 'line_total']
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    items = InvoiceItemSerializer(many=True, read_only=True)
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            'id',
            'number',
            'customer',
            'customer_name',
            'customer_email',
            'customer_phone',
            'items',
            'tax_rate',
            'subtotal',
            'tax',
            'discount',
            'total',
            'payment_terms',
            'issue_date',
            'due_date',
            'notes',
            'status',
            'is_overdue',
            'sent_at',
            'paid_at',
            'created_at',
        ]
        read_only_fields = fields

    def get_is_overdue(self, obj):
        return obj.status == InvoiceStatus.OVERDUE


class InvoiceListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for invoice lists."""

    class Meta:
        model = Invoice
        fields = ['id', 'number', 'customer_name', 'total', 'issue_date', 'due_date', 'status']
        read_only_fields = fields
