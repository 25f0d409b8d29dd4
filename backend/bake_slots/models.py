from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Location(models.Model):
    """A pickup location, e.g. the farmstand or a market stall."""

    name = models.CharField(max_length=100)
    address = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Location")
        verbose_name_plural = _("Locations")
        ordering = ["sort_order", "name"]

    def __str__(self):
        return self.name


class BakeSlot(models.Model):
    """
    A dated, capacity-limited pickup window at a location.

    ``current_orders`` counts committed loaves, not orders. It is only ever
    written by ``CapacityService``, which bumps ``version`` on every write.
    """

    date = models.DateField(db_index=True)
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name="bake_slots")
    total_capacity = models.PositiveIntegerField()
    current_orders = models.PositiveIntegerField(default=0)
    cutoff_at = models.DateTimeField(help_text=_("No new orders are accepted after this moment."))
    is_open = models.BooleanField(default=True)
    manually_closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="closed_bake_slots",
    )
    manually_closed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    version = models.PositiveIntegerField(default=0, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Bake Slot")
        verbose_name_plural = _("Bake Slots")
        ordering = ["date", "location__sort_order"]
        constraints = [
            models.CheckConstraint(
                condition=Q(current_orders__lte=F("total_capacity")),
                name="bake_slot_orders_within_capacity",
            ),
        ]
        indexes = [
            models.Index(fields=["date", "is_open"], name="bake_slot_date_open_idx"),
        ]

    def __str__(self):
        return f"{self.date} @ {self.location}"

    @property
    def remaining_capacity(self) -> int:
        return max(self.total_capacity - self.current_orders, 0)

    def is_accepting_orders(self, now=None) -> bool:
        """Open, not closed by staff, before cutoff and not in the past."""
        now = now or timezone.now()
        return (
            self.is_open
            and self.manually_closed_by_id is None
            and now < self.cutoff_at
            and self.date >= timezone.localdate(now)
        )

    def is_past_cutoff(self, now=None) -> bool:
        return (now or timezone.now()) >= self.cutoff_at


class FlavorCap(models.Model):
    """Optional per-flavor limit within a bake slot."""

    bake_slot = models.ForeignKey(BakeSlot, on_delete=models.CASCADE, related_name="flavor_caps")
    flavor = models.ForeignKey("recipes.Flavor", on_delete=models.CASCADE, related_name="caps")
    max_quantity = models.PositiveIntegerField()
    current_quantity = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = _("Flavor Cap")
        verbose_name_plural = _("Flavor Caps")
        constraints = [
            models.UniqueConstraint(fields=["bake_slot", "flavor"], name="unique_flavor_cap_per_slot"),
            models.CheckConstraint(
                condition=Q(current_quantity__lte=F("max_quantity")),
                name="flavor_cap_within_max",
            ),
        ]

    def __str__(self):
        return f"{self.flavor} cap {self.current_quantity}/{self.max_quantity} on {self.bake_slot}"

    @property
    def remaining(self) -> int:
        return max(self.max_quantity - self.current_quantity, 0)
