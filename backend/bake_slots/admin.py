from django.contrib import admin

from .models import BakeSlot, FlavorCap, Location


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("name", "address", "is_active", "sort_order")
    list_filter = ("is_active",)
    search_fields = ("name", "address")


class FlavorCapInline(admin.TabularInline):
    model = FlavorCap
    extra = 0
    readonly_fields = ("current_quantity",)


@admin.register(BakeSlot)
class BakeSlotAdmin(admin.ModelAdmin):
    list_display = ("date", "location", "current_orders", "total_capacity", "cutoff_at", "is_open")
    list_filter = ("is_open", "location")
    date_hierarchy = "date"
    # Counters belong to CapacityService.
    readonly_fields = ("current_orders", "version", "manually_closed_by", "manually_closed_at")
    inlines = [FlavorCapInline]
