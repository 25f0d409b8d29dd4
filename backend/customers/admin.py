from django.contrib import admin

from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("__str__", "notification_pref", "total_orders", "total_spent", "last_order_date")
    list_filter = ("notification_pref", "sms_opt_in")
    search_fields = ("email", "first_name", "last_name", "phone")
    readonly_fields = ("total_orders", "total_spent", "first_order_date", "last_order_date", "created_at", "updated_at")
