from rest_framework import serializers

from .models import PrepSheet, PrepSheetItem


class PrepSheetItemSerializer(serializers.ModelSerializer):
    flavor_name = serializers.CharField(source="flavor.name", read_only=True)
    customer_name = serializers.SerializerMethodField()
    is_extra = serializers.BooleanField(read_only=True)

    class Meta:
        model = PrepSheetItem
        fields = [
            "id",
            "order",
            "customer_name",
            "flavor",
            "flavor_name",
            "planned_quantity",
            "actual_quantity",
            "is_extra",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj):
        if obj.order_id is None:
            return None
        return obj.order.customer.full_name


class PrepSheetSerializer(serializers.ModelSerializer):
    items = PrepSheetItemSerializer(many=True, read_only=True)
    total_planned = serializers.SerializerMethodField()

    class Meta:
        model = PrepSheet
        fields = [
            "id",
            "bake_date",
            "status",
            "notes",
            "items",
            "total_planned",
            "completed_at",
            "completed_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["status", "completed_at", "completed_by", "created_at", "updated_at"]

    def get_total_planned(self, obj):
        return sum(item.planned_quantity for item in obj.items.all())


class CreatePrepSheetSerializer(serializers.Serializer):
    bake_date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class SheetOrderSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class AddExtraSerializer(serializers.Serializer):
    flavor_id = serializers.IntegerField()
    quantity = serializers.IntegerField()


class CompleteSheetSerializer(serializers.Serializer):
    """``actual_quantities`` maps prep sheet item id to loaves actually baked."""

    actual_quantities = serializers.DictField(child=serializers.IntegerField(), required=False, default=dict)
