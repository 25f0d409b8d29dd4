from django.contrib import admin

from .models import Flavor, Recipe


class RecipeInline(admin.StackedInline):
    model = Recipe
    extra = 0


@admin.register(Flavor)
class FlavorAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "sort_order", "updated_at")
    list_filter = ("is_active",)
    search_fields = ("name",)
    ordering = ("sort_order", "name")
    inlines = [RecipeInline]


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ("name", "flavor", "updated_at")
    search_fields = ("name", "flavor__name")
    raw_id_fields = ("flavor",)
