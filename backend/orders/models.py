from decimal import Decimal
import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Order(models.Model):
    """
    A customer's reservation of loaves against one bake slot.

    ``status`` is the stored lifecycle state. A submitted order whose slot
    cutoff has passed reads as ``cutoff_passed`` through ``effective_status``
    and is persisted that way the next time the order is mutated.
    """

    class OrderStatus(models.TextChoices):
        SUBMITTED = "submitted", _("Submitted")
        CUTOFF_PASSED = "cutoff_passed", _("Cutoff Passed")
        IN_PRODUCTION = "in_production", _("In Production")
        READY = "ready", _("Ready")
        PICKED_UP = "picked_up", _("Picked Up")
        CANCELED = "canceled", _("Canceled")
        NO_SHOW = "no_show", _("No Show")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")
        CREDITED = "credited", _("Credited")
        VOID = "void", _("Void")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer = models.ForeignKey("customers.Customer", on_delete=models.PROTECT, related_name="orders")
    bake_slot = models.ForeignKey("bake_slots.BakeSlot", on_delete=models.PROTECT, related_name="orders")
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.SUBMITTED)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    payment_method = models.CharField(max_length=50, blank=True, null=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    customer_notes = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["bake_slot", "status"], name="order_slot_status_idx"),
            models.Index(fields=["payment_status"], name="order_payment_status_idx"),
        ]

    def __str__(self):
        return f"Order {str(self.id)[:8]} ({self.get_status_display()})"

    @property
    def effective_status(self) -> str:
        if self.status == self.OrderStatus.SUBMITTED and self.bake_slot.is_past_cutoff():
            return self.OrderStatus.CUTOFF_PASSED
        return self.status

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items.all())

    def flavor_quantities(self) -> dict:
        """Loaves per flavor id, as used by the capacity ledger."""
        quantities = {}
        for item in self.items.all():
            quantities[item.flavor_id] = quantities.get(item.flavor_id, 0) + item.quantity
        return quantities


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    flavor = models.ForeignKey("recipes.Flavor", on_delete=models.PROTECT, related_name="order_items")
    # Snapshot of the flavor name at submission time.
    flavor_name = models.CharField(max_length=100)
    size = models.CharField(max_length=50)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        verbose_name = _("Order Item")
        verbose_name_plural = _("Order Items")
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=1), name="order_item_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.flavor_name} ({self.size})"
