from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'vendor', 'price', 'discount_price', 'buying_price', 'stock', 'is_active']
    list_filter = ['is_active', 'category']
    search_fields = ['name', 'sku', 'vendor__email', 'vendor__display_name']
    list_select_related = ['vendor']
    readonly_fields = ['created_at', 'updated_at']
