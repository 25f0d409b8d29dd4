"""
Tests for the capacity ledger.
"""
import pytest
from datetime import timedelta
from django.db.models import F
from django.utils import timezone

from bake_slots.models import BakeSlot, FlavorCap
from bake_slots.services import CapacityService
from core_backend.exceptions import (
    CapacityExceeded,
    InvalidQuantity,
    ReleaseUnderflow,
    SlotClosed,
    SlotNotFound,
    SyncUnavailable,
)
from prep_sheets.services import PrepSheetService


@pytest.mark.django_db
class TestTryCommit:
    def test_rejects_order_over_remaining_capacity(self, make_bake_slot):
        """
        CRITICAL: Verify a near-full slot rejects an order that would oversell.

        Scenario:
        - Slot with total_capacity=10, current_orders=8
        - Order for 3 loaves, then an order for 2

        Expected:
        - 3 loaves rejected with CapacityExceeded, counter stays 8
        - 2 loaves accepted, counter becomes 10
        """
        slot = make_bake_slot(total_capacity=10, current_orders=8)

        with pytest.raises(CapacityExceeded) as exc_info:
            CapacityService.try_commit(slot.pk, 3)
        assert exc_info.value.details["remaining"] == 2
        slot.refresh_from_db()
        assert slot.current_orders == 8

        result = CapacityService.try_commit(slot.pk, 2)
        assert result.accepted is True
        assert result.remaining == 0
        slot.refresh_from_db()
        assert slot.current_orders == 10

    def test_commit_bumps_version(self, bake_slot):
        before = bake_slot.version

        CapacityService.try_commit(bake_slot.pk, 1)

        bake_slot.refresh_from_db()
        assert bake_slot.version == before + 1

    def test_unknown_slot(self, db):
        with pytest.raises(SlotNotFound):
            CapacityService.try_commit(999999, 1)

    def test_closed_slot(self, make_bake_slot):
        slot = make_bake_slot(is_open=False)

        with pytest.raises(SlotClosed):
            CapacityService.try_commit(slot.pk, 1)

    def test_manually_closed_slot(self, bake_slot, staff_user):
        CapacityService.close_slot(bake_slot.pk, staff_user)

        with pytest.raises(SlotClosed):
            CapacityService.try_commit(bake_slot.pk, 1)

    def test_past_cutoff(self, make_bake_slot):
        slot = make_bake_slot(cutoff_at=timezone.now() - timedelta(minutes=1))

        with pytest.raises(SlotClosed):
            CapacityService.try_commit(slot.pk, 1)

    def test_slot_date_in_the_past(self, make_bake_slot):
        slot = make_bake_slot(days_ahead=-1, cutoff_at=timezone.now() + timedelta(hours=2))

        with pytest.raises(SlotClosed):
            CapacityService.try_commit(slot.pk, 1)

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_quantity_must_be_positive(self, bake_slot, quantity):
        with pytest.raises(InvalidQuantity):
            CapacityService.try_commit(bake_slot.pk, quantity)

    def test_flavor_cap_is_enforced(self, bake_slot, flavor):
        FlavorCap.objects.create(bake_slot=bake_slot, flavor=flavor, max_quantity=3)

        CapacityService.try_commit(bake_slot.pk, 2, {flavor.pk: 2})
        with pytest.raises(CapacityExceeded) as exc_info:
            CapacityService.try_commit(bake_slot.pk, 2, {flavor.pk: 2})

        assert exc_info.value.details["flavor_id"] == flavor.pk
        bake_slot.refresh_from_db()
        assert bake_slot.current_orders == 2
        assert FlavorCap.objects.get(bake_slot=bake_slot, flavor=flavor).current_quantity == 2

    def test_flavors_without_cap_only_use_slot_total(self, bake_slot, flavor, second_flavor):
        FlavorCap.objects.create(bake_slot=bake_slot, flavor=flavor, max_quantity=1)

        result = CapacityService.try_commit(bake_slot.pk, 5, {second_flavor.pk: 5})

        assert result.remaining == 5

    def test_lost_race_is_retried_then_gives_up(self, bake_slot, monkeypatch, settings):
        """
        Verify the compare-and-swap loop surfaces SyncUnavailable once it has
        lost every attempt.
        """
        settings.BAKERY = {"CAPACITY_CAS_RETRIES": 3}
        calls = []

        def always_lose(bake_slot_id, quantity, flavor_quantities):
            calls.append(bake_slot_id)
            return None

        monkeypatch.setattr(CapacityService, "_attempt_commit", staticmethod(always_lose))

        with pytest.raises(SyncUnavailable) as exc_info:
            CapacityService.try_commit(bake_slot.pk, 1)

        assert len(calls) == 3
        assert exc_info.value.retryable is True

    def test_commit_rechecks_capacity_after_losing_a_race(self, make_bake_slot, monkeypatch):
        """
        CRITICAL: Verify a commit that loses the version check re-reads the slot.

        Scenario:
        - Slot has room for 10 loaves
        - Another writer commits 8 loaves between our read and our write
        - We then try to write 3 loaves against the stale read

        Expected:
        - The stale write is refused, the retry sees 8 committed and rejects
        - Only the other writer's 8 loaves are counted
        """
        slot = make_bake_slot(total_capacity=10)
        original_lock = CapacityService._lock_slot
        reads = []

        def lock_then_interleave(bake_slot_id):
            locked = original_lock(bake_slot_id)
            reads.append(locked.current_orders)
            if len(reads) == 1:
                BakeSlot.objects.filter(pk=bake_slot_id).update(
                    current_orders=F("current_orders") + 8, version=F("version") + 1
                )
            return locked

        monkeypatch.setattr(CapacityService, "_lock_slot", staticmethod(lock_then_interleave))

        with pytest.raises(CapacityExceeded) as exc_info:
            CapacityService.try_commit(slot.pk, 3)

        assert reads == [0, 8]
        assert exc_info.value.details["remaining"] == 2
        slot.refresh_from_db()
        assert slot.current_orders == 8
        assert slot.version == 1

    def test_sequential_commits_never_oversell(self, make_bake_slot):
        """
        Verify that the accepted quantities always add up to the committed
        counter and never pass total capacity.
        """
        slot = make_bake_slot(total_capacity=17)
        accepted = 0

        for quantity in [5, 4, 6, 3, 2, 1, 1, 7]:
            try:
                CapacityService.try_commit(slot.pk, quantity)
                accepted += quantity
            except CapacityExceeded:
                pass

        slot.refresh_from_db()
        assert slot.current_orders == accepted
        assert slot.current_orders <= slot.total_capacity


@pytest.mark.django_db
class TestRelease:
    def test_release_returns_capacity(self, make_bake_slot):
        slot = make_bake_slot(total_capacity=10, current_orders=6)

        result = CapacityService.release(slot.pk, 4)

        assert result.released == 4
        assert result.remaining == 8
        assert result.underflow is False
        slot.refresh_from_db()
        assert slot.current_orders == 2

    def test_release_clamps_at_zero_and_warns(self, make_bake_slot):
        slot = make_bake_slot(total_capacity=10, current_orders=2)

        with pytest.warns(ReleaseUnderflow):
            result = CapacityService.release(slot.pk, 5)

        assert result.released == 2
        assert result.underflow is True
        slot.refresh_from_db()
        assert slot.current_orders == 0

    def test_release_works_on_closed_slot(self, make_bake_slot):
        slot = make_bake_slot(current_orders=3, is_open=False)

        CapacityService.release(slot.pk, 3)

        slot.refresh_from_db()
        assert slot.current_orders == 0

    def test_release_decrements_flavor_caps(self, bake_slot, flavor):
        cap = FlavorCap.objects.create(bake_slot=bake_slot, flavor=flavor, max_quantity=5)
        CapacityService.try_commit(bake_slot.pk, 3, {flavor.pk: 3})

        CapacityService.release(bake_slot.pk, 2, {flavor.pk: 2})

        cap.refresh_from_db()
        assert cap.current_quantity == 1


@pytest.mark.django_db
class TestSlotAdministration:
    def test_close_and_reopen(self, bake_slot, staff_user):
        closed = CapacityService.close_slot(bake_slot.pk, staff_user)
        assert closed.is_open is False
        assert closed.manually_closed_by == staff_user
        assert closed.manually_closed_at is not None

        reopened = CapacityService.reopen_slot(bake_slot.pk)
        assert reopened.is_open is True
        assert reopened.manually_closed_by is None
        assert reopened.is_accepting_orders()

    def test_set_total_capacity(self, make_bake_slot):
        slot = make_bake_slot(total_capacity=10, current_orders=4)

        updated = CapacityService.set_total_capacity(slot.pk, 6)

        assert updated.total_capacity == 6
        assert updated.remaining_capacity == 2

    def test_cannot_shrink_below_committed(self, make_bake_slot):
        slot = make_bake_slot(total_capacity=10, current_orders=4)

        with pytest.raises(InvalidQuantity):
            CapacityService.set_total_capacity(slot.pk, 3)

        slot.refresh_from_db()
        assert slot.total_capacity == 10

    def test_list_available_slots(self, make_bake_slot, staff_user):
        later = make_bake_slot(days_ahead=5)
        sooner = make_bake_slot(days_ahead=2)
        make_bake_slot(days_ahead=4, is_open=False)
        make_bake_slot(days_ahead=1, cutoff_at=timezone.now() - timedelta(hours=1))
        closed_by_staff = make_bake_slot(days_ahead=3)
        CapacityService.close_slot(closed_by_staff.pk, staff_user)

        slots = list(CapacityService.list_available_slots())

        assert slots == [sooner, later]

    def test_availability(self, make_bake_slot):
        slot = make_bake_slot(total_capacity=12, current_orders=5)

        availability = CapacityService.availability(slot)

        assert availability.remaining == 7
        assert availability.is_accepting_orders is True
        assert availability.location == "Farmstand"

    def test_open_capacity_counts_planned_extras(self, make_bake_slot, flavor):
        slot = make_bake_slot(total_capacity=12, current_orders=5)
        sheet = PrepSheetService.create(slot.date)
        PrepSheetService.add_extra(sheet.pk, flavor.pk, 3)

        summary = CapacityService.open_capacity(slot)

        assert summary.total_capacity == 12
        assert summary.ordered == 5
        assert summary.extra == 3
        assert summary.open_spots == 4


@pytest.mark.django_db(transaction=True)
@pytest.mark.concurrency
@pytest.mark.postgres
class TestConcurrentCommits:
    """Test concurrent admission against one slot to prevent overselling."""

    def test_concurrent_commits_never_oversell(self, make_bake_slot):
        """
        CRITICAL: Verify that concurrent commits don't oversell a bake slot.

        Scenario:
        - Slot has room for 10 loaves
        - 4 customers simultaneously try to reserve 3 loaves each (12 total)
        - Expected: exactly 3 succeed (9 loaves), 1 is rejected
        """
        from threading import Barrier, Thread

        slot = make_bake_slot(total_capacity=10)
        results = []
        errors = []
        barrier = Barrier(4)

        def attempt_commit(thread_id):
            from django.db import connection as thread_connection
            try:
                barrier.wait()
                CapacityService.try_commit(slot.pk, 3)
                results.append(thread_id)
            except CapacityExceeded as e:
                errors.append(f"thread_{thread_id}_error: {e}")
            except Exception as e:
                errors.append(f"thread_{thread_id}_unexpected: {e}")
            finally:
                thread_connection.close()

        threads = [Thread(target=attempt_commit, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        slot = BakeSlot.objects.get(pk=slot.pk)
        assert len(results) == 3, f"Expected 3 successful commits, got {len(results)}. Errors: {errors}"
        assert len(errors) == 1
        assert "_unexpected" not in errors[0]
        assert slot.current_orders == 3 * len(results)
        assert slot.current_orders <= slot.total_capacity
