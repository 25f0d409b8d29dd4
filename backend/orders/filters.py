import django_filters

from .models import Order


class OrderFilter(django_filters.FilterSet):
    bake_date = django_filters.DateFilter(field_name="bake_slot__date")
    bake_date_from = django_filters.DateFilter(field_name="bake_slot__date", lookup_expr="gte")
    bake_date_to = django_filters.DateFilter(field_name="bake_slot__date", lookup_expr="lte")
    location = django_filters.NumberFilter(field_name="bake_slot__location")
    email = django_filters.CharFilter(field_name="customer__email", lookup_expr="iexact")
    created_at__gte = django_filters.DateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_at__lte = django_filters.DateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Order
        fields = ["status", "payment_status", "bake_slot", "customer"]
