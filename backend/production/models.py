from django.db import models
from django.utils.translation import gettext_lazy as _


class ProductionRecord(models.Model):
    """
    A batch of baked loaves and what became of them.

    Records are created when a prep sheet is completed and are split when
    part of a batch ends up with a different disposition.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        PICKED_UP = "picked_up", _("Picked Up")
        SOLD = "sold", _("Sold")
        WASTED = "wasted", _("Wasted")
        PERSONAL = "personal", _("Personal")
        GIFTED = "gifted", _("Gifted")

    prep_sheet = models.ForeignKey(
        "prep_sheets.PrepSheet", on_delete=models.PROTECT, related_name="production_records"
    )
    order = models.ForeignKey(
        "orders.Order", on_delete=models.PROTECT, null=True, blank=True, related_name="production_records"
    )
    flavor = models.ForeignKey("recipes.Flavor", on_delete=models.PROTECT, related_name="production_records")
    quantity = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    sale_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    notes = models.TextField(blank=True)
    bake_date = models.DateField(db_index=True)
    split_from = models.ForeignKey(
        "self", on_delete=models.SET_NULL, null=True, blank=True, related_name="splits"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Production Record")
        verbose_name_plural = _("Production Records")
        ordering = ["-bake_date", "id"]
        indexes = [
            models.Index(fields=["bake_date", "status"], name="production_date_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=1), name="production_record_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.flavor} on {self.bake_date} ({self.get_status_display()})"

    @property
    def is_extra(self) -> bool:
        return self.order_id is None
