import django_filters

from .models import ProductionRecord


class ProductionRecordFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="bake_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="bake_date", lookup_expr="lte")
    is_extra = django_filters.BooleanFilter(field_name="order", lookup_expr="isnull")

    class Meta:
        model = ProductionRecord
        fields = ["bake_date", "status", "flavor", "prep_sheet", "order"]
