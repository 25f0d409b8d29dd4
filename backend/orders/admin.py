from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("flavor", "flavor_name", "size", "quantity", "unit_price", "total_price")
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-mostly admin. Status and capacity changes go through OrderService,
    so only notes and payment fields are editable here.
    """

    list_display = ("id", "customer", "bake_slot", "status", "payment_status", "total_amount", "created_at")
    list_filter = ("status", "payment_status", "bake_slot__date")
    search_fields = ("id", "customer__email", "customer__last_name")
    readonly_fields = ("id", "customer", "bake_slot", "status", "total_amount", "customer_notes", "created_at", "updated_at")
    inlines = [OrderItemInline]

    def has_delete_permission(self, request, obj=None):
        return False
