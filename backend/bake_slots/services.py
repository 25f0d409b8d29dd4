"""
Capacity ledger for bake slots.

Admission is serialized per slot: the slot row is read with
``select_for_update`` and written with a compare-and-swap on ``version``.
Row locks do the work on PostgreSQL; the version check keeps the write
correct on backends that ignore ``FOR UPDATE``. A lost race is retried a
bounded number of times before surfacing as ``SyncUnavailable``.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Optional
import logging
import warnings

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from core_backend.config import app_settings
from core_backend.db import storage_guard
from core_backend.exceptions import (
    CapacityExceeded,
    InvalidQuantity,
    ReleaseUnderflow,
    SlotClosed,
    SlotNotFound,
    SyncUnavailable,
)

from .models import BakeSlot, FlavorCap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitResult:
    accepted: bool
    remaining: int


@dataclass(frozen=True)
class ReleaseResult:
    released: int
    remaining: int
    underflow: bool


@dataclass(frozen=True)
class SlotAvailability:
    bake_slot_id: int
    date: date
    location: str
    cutoff_at: datetime
    total_capacity: int
    current_orders: int
    remaining: int
    is_accepting_orders: bool


@dataclass(frozen=True)
class OpenCapacity:
    """How much of a slot is still unclaimed once planned extras are counted."""
    bake_slot_id: int
    total_capacity: int
    ordered: int
    extra: int
    open_spots: int


class CapacityService:
    """Admission and release of loaves against bake slot capacity."""

    @staticmethod
    def _lock_slot(bake_slot_id) -> BakeSlot:
        try:
            return BakeSlot.objects.select_for_update().get(pk=bake_slot_id)
        except BakeSlot.DoesNotExist:
            raise SlotNotFound(bake_slot_id=bake_slot_id)

    @staticmethod
    def _lock_caps(slot: BakeSlot, flavor_quantities: Dict[int, int]) -> Dict[int, FlavorCap]:
        if not flavor_quantities:
            return {}
        caps = FlavorCap.objects.select_for_update().filter(
            bake_slot=slot, flavor_id__in=list(flavor_quantities)
        )
        return {cap.flavor_id: cap for cap in caps}

    @staticmethod
    @storage_guard
    def try_commit(bake_slot_id, quantity: int, flavor_quantities: Optional[Dict[int, int]] = None) -> CommitResult:
        """
        Atomically admit ``quantity`` loaves into a slot.

        Args:
            bake_slot_id: the slot to commit against.
            quantity: total loaves in the order, at least 1.
            flavor_quantities: loaves per flavor id, checked against any
                FlavorCap rows the slot has.

        Raises:
            SlotNotFound, SlotClosed, CapacityExceeded, InvalidQuantity,
            SyncUnavailable when the slot stays contended.
        """
        if quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1.", quantity=quantity)
        flavor_quantities = flavor_quantities or {}

        attempts = app_settings.capacity_cas_retries
        for attempt in range(1, attempts + 1):
            result = CapacityService._attempt_commit(bake_slot_id, quantity, flavor_quantities)
            if result is not None:
                return result
            logger.info(f"Capacity write on slot {bake_slot_id} lost a race (attempt {attempt}/{attempts})")

        logger.warning(f"Giving up on slot {bake_slot_id} after {attempts} contended attempts")
        raise SyncUnavailable(
            "This bake slot is busy. Please retry.", bake_slot_id=bake_slot_id, attempts=attempts
        )

    @staticmethod
    @transaction.atomic
    def _attempt_commit(bake_slot_id, quantity, flavor_quantities) -> Optional[CommitResult]:
        """One read-check-write pass. Returns None when the version check loses."""
        slot = CapacityService._lock_slot(bake_slot_id)

        if not slot.is_accepting_orders():
            logger.warning(f"Rejected {quantity} loaves for closed slot {slot.pk}")
            raise SlotClosed(bake_slot_id=slot.pk)

        if slot.current_orders + quantity > slot.total_capacity:
            logger.warning(
                f"Rejected {quantity} loaves for slot {slot.pk}: "
                f"{slot.remaining_capacity} of {slot.total_capacity} remaining"
            )
            raise CapacityExceeded(
                f"Only {slot.remaining_capacity} loaves left for this bake slot.",
                bake_slot_id=slot.pk,
                requested=quantity,
                remaining=slot.remaining_capacity,
            )

        caps = CapacityService._lock_caps(slot, flavor_quantities)
        for flavor_id, cap in caps.items():
            wanted = flavor_quantities[flavor_id]
            if cap.current_quantity + wanted > cap.max_quantity:
                logger.warning(f"Rejected {wanted} loaves of flavor {flavor_id} for slot {slot.pk}: cap reached")
                raise CapacityExceeded(
                    f"Only {cap.remaining} loaves of {cap.flavor.name} left for this bake slot.",
                    bake_slot_id=slot.pk,
                    flavor_id=flavor_id,
                    requested=wanted,
                    remaining=cap.remaining,
                )

        updated = BakeSlot.objects.filter(pk=slot.pk, version=slot.version).update(
            current_orders=F("current_orders") + quantity,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        if not updated:
            return None

        for flavor_id, cap in caps.items():
            FlavorCap.objects.filter(pk=cap.pk).update(
                current_quantity=F("current_quantity") + flavor_quantities[flavor_id]
            )

        remaining = slot.total_capacity - slot.current_orders - quantity
        logger.info(f"Committed {quantity} loaves to slot {slot.pk}; {remaining} remaining")
        return CommitResult(accepted=True, remaining=remaining)

    @staticmethod
    @storage_guard
    @transaction.atomic
    def release(bake_slot_id, quantity: int, flavor_quantities: Optional[Dict[int, int]] = None) -> ReleaseResult:
        """
        Return ``quantity`` loaves to a slot. Counters are clamped at zero; a
        release larger than what is committed warns with ReleaseUnderflow.
        Releasing works on closed slots too.
        """
        if quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1.", quantity=quantity)
        flavor_quantities = flavor_quantities or {}

        slot = CapacityService._lock_slot(bake_slot_id)
        released = min(quantity, slot.current_orders)
        underflow = released < quantity

        BakeSlot.objects.filter(pk=slot.pk).update(
            current_orders=F("current_orders") - released,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )

        for flavor_id, cap in CapacityService._lock_caps(slot, flavor_quantities).items():
            wanted = flavor_quantities[flavor_id]
            cap_released = min(wanted, cap.current_quantity)
            if cap_released < wanted:
                underflow = True
            if cap_released:
                FlavorCap.objects.filter(pk=cap.pk).update(current_quantity=F("current_quantity") - cap_released)

        if underflow:
            message = (
                f"Release of {quantity} loaves on slot {slot.pk} exceeded committed count "
                f"{slot.current_orders}; clamped at zero"
            )
            logger.warning(message)
            warnings.warn(message, ReleaseUnderflow, stacklevel=2)

        remaining = slot.total_capacity - (slot.current_orders - released)
        logger.info(f"Released {released} loaves on slot {slot.pk}; {remaining} remaining")
        return ReleaseResult(released=released, remaining=remaining, underflow=underflow)

    @staticmethod
    @storage_guard
    @transaction.atomic
    def close_slot(bake_slot_id, staff_user) -> BakeSlot:
        slot = CapacityService._lock_slot(bake_slot_id)
        now = timezone.now()
        BakeSlot.objects.filter(pk=slot.pk).update(
            is_open=False,
            manually_closed_by=staff_user,
            manually_closed_at=now,
            version=F("version") + 1,
            updated_at=now,
        )
        logger.info(f"Slot {slot.pk} closed by {staff_user}")
        slot.refresh_from_db()
        return slot

    @staticmethod
    @storage_guard
    @transaction.atomic
    def reopen_slot(bake_slot_id) -> BakeSlot:
        slot = CapacityService._lock_slot(bake_slot_id)
        BakeSlot.objects.filter(pk=slot.pk).update(
            is_open=True,
            manually_closed_by=None,
            manually_closed_at=None,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        logger.info(f"Slot {slot.pk} reopened")
        slot.refresh_from_db()
        return slot

    @staticmethod
    @storage_guard
    @transaction.atomic
    def set_total_capacity(bake_slot_id, total_capacity: int) -> BakeSlot:
        """Resize a slot. Shrinking below what is already committed is rejected."""
        slot = CapacityService._lock_slot(bake_slot_id)
        if total_capacity < slot.current_orders:
            raise InvalidQuantity(
                f"Capacity cannot be lower than the {slot.current_orders} loaves already ordered.",
                bake_slot_id=slot.pk,
                total_capacity=total_capacity,
                current_orders=slot.current_orders,
            )
        BakeSlot.objects.filter(pk=slot.pk).update(
            total_capacity=total_capacity,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        logger.info(f"Slot {slot.pk} capacity changed {slot.total_capacity} -> {total_capacity}")
        slot.refresh_from_db()
        return slot

    @staticmethod
    def availability(slot: BakeSlot) -> SlotAvailability:
        return SlotAvailability(
            bake_slot_id=slot.pk,
            date=slot.date,
            location=slot.location.name,
            cutoff_at=slot.cutoff_at,
            total_capacity=slot.total_capacity,
            current_orders=slot.current_orders,
            remaining=slot.remaining_capacity,
            is_accepting_orders=slot.is_accepting_orders(),
        )

    @staticmethod
    def list_available_slots():
        """Slots still taking orders, soonest first."""
        now = timezone.now()
        return (
            BakeSlot.objects.select_related("location")
            .filter(
                is_open=True,
                manually_closed_by__isnull=True,
                cutoff_at__gt=now,
                date__gte=timezone.localdate(now),
                location__is_active=True,
            )
            .order_by("date", "location__sort_order", "location__name")
        )

    @staticmethod
    def open_capacity(slot: BakeSlot) -> OpenCapacity:
        """
        Capacity not yet claimed by orders or by extra loaves planned on the
        draft or completed prep sheets for the slot's date.
        """
        from prep_sheets.models import PrepSheetItem

        extra = (
            PrepSheetItem.objects.filter(sheet__bake_date=slot.date, order__isnull=True).aggregate(
                total=Sum("planned_quantity")
            )["total"]
            or 0
        )
        return OpenCapacity(
            bake_slot_id=slot.pk,
            total_capacity=slot.total_capacity,
            ordered=slot.current_orders,
            extra=extra,
            open_spots=max(slot.total_capacity - slot.current_orders - extra, 0),
        )
