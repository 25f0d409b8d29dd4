from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class PrepSheet(models.Model):
    """The production plan for one bake date: scheduled order lines plus extras."""

    class Status(models.TextChoices):
        DRAFT = "draft", _("Draft")
        COMPLETED = "completed", _("Completed")

    bake_date = models.DateField(db_index=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    notes = models.TextField(blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="completed_prep_sheets",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Prep Sheet")
        verbose_name_plural = _("Prep Sheets")
        ordering = ["-bake_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["bake_date"],
                condition=Q(status="draft"),
                name="unique_draft_prep_sheet_per_date",
            ),
        ]

    def __str__(self):
        return f"Prep sheet {self.bake_date} ({self.get_status_display()})"

    @property
    def is_draft(self) -> bool:
        return self.status == self.Status.DRAFT


class PrepSheetItem(models.Model):
    """A planned line. Items without an order are extras baked for walk-up sale."""

    sheet = models.ForeignKey(PrepSheet, on_delete=models.CASCADE, related_name="items")
    order = models.ForeignKey(
        "orders.Order", on_delete=models.PROTECT, null=True, blank=True, related_name="prep_sheet_items"
    )
    flavor = models.ForeignKey("recipes.Flavor", on_delete=models.PROTECT, related_name="prep_sheet_items")
    planned_quantity = models.PositiveIntegerField()
    actual_quantity = models.PositiveIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Prep Sheet Item")
        verbose_name_plural = _("Prep Sheet Items")
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(planned_quantity__gte=1), name="prep_item_planned_positive"),
        ]

    def __str__(self):
        kind = f"order {self.order_id}" if self.order_id else "extra"
        return f"{self.planned_quantity} x {self.flavor} ({kind})"

    @property
    def is_extra(self) -> bool:
        return self.order_id is None
