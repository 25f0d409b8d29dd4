from rest_framework import serializers

from customers.models import Customer

from .models import Order, OrderItem


class CustomerContactSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=200)
    last_name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=40)
    notification_pref = serializers.ChoiceField(
        choices=Customer.NotificationPreference.choices, required=False
    )
    sms_opt_in = serializers.BooleanField(required=False, default=False)


class OrderItemInputSerializer(serializers.Serializer):
    flavor_id = serializers.IntegerField()
    size = serializers.CharField(max_length=50)
    quantity = serializers.IntegerField(min_value=1)


class OrderSubmissionSerializer(serializers.Serializer):
    """
    Public order form payload. Prices are never accepted from the client;
    any price fields in ``items`` are dropped by the item serializer.
    """

    bake_slot_id = serializers.IntegerField()
    customer = CustomerContactSerializer()
    items = OrderItemInputSerializer(many=True, allow_empty=True)
    customer_notes = serializers.CharField(required=False, allow_blank=True, default="")


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["id", "flavor", "flavor_name", "size", "quantity", "unit_price", "total_price"]
        read_only_fields = fields


class OrderCustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "first_name", "last_name", "email", "phone"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    customer = OrderCustomerSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    bake_date = serializers.DateField(source="bake_slot.date", read_only=True)
    location = serializers.CharField(source="bake_slot.location.name", read_only=True)
    effective_status = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer",
            "bake_slot",
            "bake_date",
            "location",
            "items",
            "total_amount",
            "status",
            "effective_status",
            "payment_status",
            "payment_method",
            "customer_notes",
            "admin_notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderConfirmationSerializer(serializers.ModelSerializer):
    """What the customer gets back after submitting."""

    items = OrderItemSerializer(many=True, read_only=True)
    bake_date = serializers.DateField(source="bake_slot.date", read_only=True)
    location = serializers.CharField(source="bake_slot.location.name", read_only=True)

    class Meta:
        model = Order
        fields = ["id", "bake_date", "location", "items", "total_amount", "status", "created_at"]
        read_only_fields = fields


class UpdatePaymentSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=Order.PaymentStatus.choices)
    payment_method = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)


class AdminNotesSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(allow_blank=True)
