from rest_framework import serializers

from orders.models import Order

from .models import ProductionRecord


class ProductionRecordSerializer(serializers.ModelSerializer):
    flavor_name = serializers.CharField(source="flavor.name", read_only=True)
    customer_name = serializers.SerializerMethodField()
    payment_status = serializers.SerializerMethodField()
    is_extra = serializers.BooleanField(read_only=True)

    class Meta:
        model = ProductionRecord
        fields = [
            "id",
            "prep_sheet",
            "order",
            "customer_name",
            "payment_status",
            "flavor",
            "flavor_name",
            "quantity",
            "status",
            "sale_price",
            "notes",
            "bake_date",
            "split_from",
            "is_extra",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj):
        if obj.order_id is None:
            return None
        return obj.order.customer.full_name

    def get_payment_status(self, obj):
        if obj.order_id is None:
            return None
        return obj.order.payment_status


class UpdateProductionRecordSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ProductionRecord.Status.choices)
    sale_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class SplitProductionRecordSerializer(serializers.Serializer):
    split_quantity = serializers.IntegerField()
    new_status = serializers.ChoiceField(choices=ProductionRecord.Status.choices)
    sale_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)


class OrderPaymentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    payment_status = serializers.ChoiceField(choices=Order.PaymentStatus.choices)
    payment_method = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)


class DispositionTotalsSerializer(serializers.Serializer):
    records = serializers.IntegerField()
    loaves = serializers.IntegerField()


class FlavorProductionTotalsSerializer(serializers.Serializer):
    flavor_id = serializers.IntegerField()
    flavor_name = serializers.CharField()
    loaves = serializers.IntegerField()
    sold = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2)


class ProductionSummarySerializer(serializers.Serializer):
    total_loaves = serializers.IntegerField()
    sold_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    by_status = serializers.DictField(child=DispositionTotalsSerializer())
    by_flavor = FlavorProductionTotalsSerializer(many=True)


class SummaryQuerySerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
