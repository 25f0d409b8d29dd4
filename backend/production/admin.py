from django.contrib import admin

from .models import ProductionRecord


@admin.register(ProductionRecord)
class ProductionRecordAdmin(admin.ModelAdmin):
    list_display = ("bake_date", "flavor", "quantity", "status", "sale_price", "order")
    list_filter = ("status", "bake_date")
    raw_id_fields = ("order", "prep_sheet", "split_from")
    readonly_fields = ("quantity", "split_from", "created_at", "updated_at")
