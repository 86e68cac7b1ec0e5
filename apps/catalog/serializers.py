from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Product with the price a cart would use."""

    vendor = serializers.PrimaryKeyRelatedField(read_only=True)
    vendor_name = serializers.CharField(source='vendor.get_display_name', read_only=True)
    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id',
            'vendor',
            'vendor_name',
            'name',
            'category',
            'sku',
            'price',
            'discount_price',
            'effective_price',
            'buying_price',
            'stock',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate(self, attrs):
        price = attrs.get('price', getattr(self.instance, 'price', None))
        discount = attrs.get('discount_price')
        if discount is not None and price is not None and discount > price:
            raise serializers.ValidationError({
                'discount_price': 'Discount price cannot exceed the list price'
            })
        return attrs
