from rest_framework import serializers

from .models import BakeSlot, FlavorCap, Location


class LocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = ["id", "name", "address", "description", "is_active", "sort_order"]


class FlavorCapSerializer(serializers.ModelSerializer):
    flavor_name = serializers.CharField(source="flavor.name", read_only=True)
    remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = FlavorCap
        fields = ["id", "flavor", "flavor_name", "max_quantity", "current_quantity", "remaining"]
        read_only_fields = ["current_quantity"]


class BakeSlotSerializer(serializers.ModelSerializer):
    """Staff view of a slot, including counters and manual-close details."""

    location = LocationSerializer(read_only=True)
    remaining_capacity = serializers.IntegerField(read_only=True)
    is_accepting_orders = serializers.SerializerMethodField()
    flavor_caps = FlavorCapSerializer(many=True, read_only=True)

    class Meta:
        model = BakeSlot
        fields = [
            "id",
            "date",
            "location",
            "total_capacity",
            "current_orders",
            "remaining_capacity",
            "cutoff_at",
            "is_open",
            "is_accepting_orders",
            "manually_closed_by",
            "manually_closed_at",
            "notes",
            "flavor_caps",
            "version",
        ]
        read_only_fields = fields

    def get_is_accepting_orders(self, obj):
        return obj.is_accepting_orders()


class PublicBakeSlotSerializer(serializers.ModelSerializer):
    """What the order form sees: no counters beyond what is left."""

    location = LocationSerializer(read_only=True)
    remaining_capacity = serializers.IntegerField(read_only=True)

    class Meta:
        model = BakeSlot
        fields = ["id", "date", "location", "cutoff_at", "remaining_capacity"]
        read_only_fields = fields


class SetCapacitySerializer(serializers.Serializer):
    total_capacity = serializers.IntegerField(min_value=0)


class OpenCapacitySerializer(serializers.Serializer):
    bake_slot_id = serializers.IntegerField()
    total_capacity = serializers.IntegerField()
    ordered = serializers.IntegerField()
    extra = serializers.IntegerField()
    open_spots = serializers.IntegerField()
