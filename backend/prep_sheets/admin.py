from django.contrib import admin

from .models import PrepSheet, PrepSheetItem


class PrepSheetItemInline(admin.TabularInline):
    model = PrepSheetItem
    extra = 0
    raw_id_fields = ("order",)
    readonly_fields = ("actual_quantity",)


@admin.register(PrepSheet)
class PrepSheetAdmin(admin.ModelAdmin):
    list_display = ("bake_date", "status", "completed_at", "completed_by")
    list_filter = ("status",)
    date_hierarchy = "bake_date"
    readonly_fields = ("status", "completed_at", "completed_by", "created_at", "updated_at")
    inlines = [PrepSheetItemInline]
