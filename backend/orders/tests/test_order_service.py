"""
Tests for the order lifecycle.
"""
import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone

from bake_slots.models import BakeSlot
from core_backend.exceptions import (
    CapacityExceeded,
    InvalidOrder,
    InvalidTransition,
    NotFound,
    SlotClosed,
    SlotNotFound,
)
from customers.models import Customer
from orders.models import Order
from orders.services import OrderService
from orders.signals import order_ready, order_submitted
from prep_sheets.models import PrepSheetItem
from prep_sheets.services import PrepSheetService


@pytest.mark.django_db
class TestSubmit:
    def test_submit_prices_from_catalog(self, bake_slot, flavor, customer_data):
        """
        CRITICAL: Verify totals are recomputed from catalog prices.

        Scenario:
        - Client sends a bogus unit price for 3 regular loaves at $12

        Expected:
        - Order total is $36, items carry catalog prices
        """
        order = OrderService.submit(
            bake_slot.pk,
            [{"flavor_id": flavor.pk, "size": "regular", "quantity": 3, "unit_price": "0.01"}],
            customer_data,
        )

        item = order.items.get()
        assert item.unit_price == Decimal("12.00")
        assert item.total_price == Decimal("36.00")
        assert order.total_amount == Decimal("36.00")
        assert order.status == Order.OrderStatus.SUBMITTED
        assert order.payment_status == Order.PaymentStatus.PENDING
        bake_slot.refresh_from_db()
        assert bake_slot.current_orders == 3

    def test_total_equals_sum_of_items(self, make_order, flavor, second_flavor):
        order = make_order(
            items=[
                {"flavor_id": flavor.pk, "size": "regular", "quantity": 2},
                {"flavor_id": flavor.pk, "size": "mini", "quantity": 1},
                {"flavor_id": second_flavor.pk, "size": "regular", "quantity": 1},
            ]
        )

        assert order.total_amount == sum(item.total_price for item in order.items.all())
        assert order.total_amount == Decimal("44.00")

    def test_capacity_exceeded_creates_nothing(self, make_bake_slot, flavor, customer_data):
        slot = make_bake_slot(total_capacity=10, current_orders=8)

        with pytest.raises(CapacityExceeded):
            OrderService.submit(slot.pk, [{"flavor_id": flavor.pk, "size": "regular", "quantity": 3}], customer_data)

        assert Order.objects.count() == 0
        assert Customer.objects.count() == 0
        slot.refresh_from_db()
        assert slot.current_orders == 8

    def test_closed_slot_is_distinguished_from_sold_out(self, make_bake_slot, flavor, customer_data):
        slot = make_bake_slot(is_open=False)

        with pytest.raises(SlotClosed):
            OrderService.submit(slot.pk, [{"flavor_id": flavor.pk, "size": "regular", "quantity": 1}], customer_data)

    def test_unknown_slot(self, flavor, customer_data):
        with pytest.raises(SlotNotFound):
            OrderService.submit(424242, [{"flavor_id": flavor.pk, "size": "regular", "quantity": 1}], customer_data)

    def test_empty_items(self, bake_slot, customer_data):
        with pytest.raises(InvalidOrder):
            OrderService.submit(bake_slot.pk, [], customer_data)

    def test_too_many_items(self, bake_slot, flavor, customer_data, settings):
        settings.BAKERY = {"MAX_ITEMS_PER_ORDER": 2}
        items = [{"flavor_id": flavor.pk, "size": "mini", "quantity": 1}] * 3

        with pytest.raises(InvalidOrder):
            OrderService.submit(bake_slot.pk, items, customer_data)

    @pytest.mark.parametrize("quantity", [0, 51])
    def test_quantity_limits(self, bake_slot, flavor, customer_data, quantity):
        with pytest.raises(InvalidOrder):
            OrderService.submit(
                bake_slot.pk, [{"flavor_id": flavor.pk, "size": "regular", "quantity": quantity}], customer_data
            )

    def test_order_total_limit(self, make_bake_slot, flavor, customer_data, settings):
        settings.BAKERY = {"MAX_ORDER_TOTAL": "30"}
        slot = make_bake_slot(total_capacity=50)

        with pytest.raises(InvalidOrder):
            OrderService.submit(slot.pk, [{"flavor_id": flavor.pk, "size": "regular", "quantity": 3}], customer_data)

        slot.refresh_from_db()
        assert slot.current_orders == 0

    def test_unknown_size(self, bake_slot, flavor, customer_data):
        with pytest.raises(InvalidOrder):
            OrderService.submit(bake_slot.pk, [{"flavor_id": flavor.pk, "size": "huge", "quantity": 1}], customer_data)

    def test_inactive_flavor(self, bake_slot, flavor, customer_data):
        flavor.is_active = False
        flavor.save()

        with pytest.raises(InvalidOrder):
            OrderService.submit(
                bake_slot.pk, [{"flavor_id": flavor.pk, "size": "regular", "quantity": 1}], customer_data
            )

    def test_invalid_email(self, bake_slot, flavor, customer_data):
        customer_data["email"] = "not-an-email"

        with pytest.raises(InvalidOrder):
            OrderService.submit(
                bake_slot.pk, [{"flavor_id": flavor.pk, "size": "regular", "quantity": 1}], customer_data
            )

    def test_customer_found_by_email_and_stats_updated(self, make_order, customer_data):
        first = make_order(quantity=1)
        customer_data["email"] = "ADA@Example.com"
        second = make_order(quantity=2)

        assert first.customer_id == second.customer_id
        customer = Customer.objects.get()
        assert customer.total_orders == 2
        assert customer.total_spent == Decimal("36.00")
        assert customer.first_order_date is not None

    def test_notes_are_sanitized(self, bake_slot, flavor, customer_data, settings):
        settings.BAKERY = {"MAX_NOTES_LENGTH": 10}

        order = OrderService.submit(
            bake_slot.pk,
            [{"flavor_id": flavor.pk, "size": "regular", "quantity": 1}],
            customer_data,
            customer_notes="  slice\x00d please, thanks  ",
        )

        assert order.customer_notes == "sliced ple"

    def test_submitted_event_fires_after_commit(self, make_order, django_capture_on_commit_callbacks):
        received = []

        def listener(sender, order, **kwargs):
            received.append(order.pk)

        order_submitted.connect(listener)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                order = make_order()
        finally:
            order_submitted.disconnect(listener)

        assert received == [order.pk]


@pytest.mark.django_db
class TestLifecycle:
    def test_cutoff_passed_is_computed_lazily(self, order):
        BakeSlot.objects.filter(pk=order.bake_slot_id).update(cutoff_at=timezone.now() - timedelta(minutes=5))
        order = OrderService.get_order(order.pk)

        assert order.status == Order.OrderStatus.SUBMITTED
        assert order.effective_status == Order.OrderStatus.CUTOFF_PASSED

    def test_cutoff_passed_is_persisted_on_next_mutation(self, order):
        BakeSlot.objects.filter(pk=order.bake_slot_id).update(cutoff_at=timezone.now() - timedelta(minutes=5))

        OrderService.update_admin_notes(order.pk, "call before pickup")

        order.refresh_from_db()
        assert order.status == Order.OrderStatus.CUTOFF_PASSED
        assert order.admin_notes == "call before pickup"

    def test_happy_path(self, order, draft_sheet, staff_user):
        PrepSheetService.add_order(draft_sheet.pk, order.pk)
        order.refresh_from_db()
        assert order.status == Order.OrderStatus.IN_PRODUCTION

        PrepSheetService.complete(draft_sheet.pk, {}, staff_user)
        order.refresh_from_db()
        assert order.status == Order.OrderStatus.READY

        OrderService.mark_picked_up(order)
        assert order.status == Order.OrderStatus.PICKED_UP

    def test_picked_up_is_terminal(self, order):
        OrderService.schedule(order)
        OrderService.mark_baked(order)
        OrderService.mark_picked_up(order)

        with pytest.raises(InvalidTransition):
            OrderService.cancel(order)
        with pytest.raises(InvalidTransition):
            OrderService.mark_no_show(order)

    def test_cannot_pick_up_before_baking(self, order):
        with pytest.raises(InvalidTransition) as exc_info:
            OrderService.mark_picked_up(order)

        assert exc_info.value.details["current_status"] == Order.OrderStatus.SUBMITTED
        order.refresh_from_db()
        assert order.status == Order.OrderStatus.SUBMITTED

    def test_no_show_from_ready(self, order):
        OrderService.schedule(order)
        OrderService.mark_baked(order)

        OrderService.mark_no_show(order)

        order.refresh_from_db()
        assert order.status == Order.OrderStatus.NO_SHOW

    def test_unschedule_returns_to_submitted(self, order):
        OrderService.schedule(order)
        OrderService.unschedule(order)

        order.refresh_from_db()
        assert order.status == Order.OrderStatus.SUBMITTED

    def test_mark_baked_sends_ready_event_after_commit(self, order, django_capture_on_commit_callbacks):
        received = []

        def listener(sender, order, **kwargs):
            received.append(order.pk)

        OrderService.schedule(order)
        order_ready.connect(listener)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                OrderService.mark_baked(order)
        finally:
            order_ready.disconnect(listener)

        assert received == [order.pk]

    def test_unknown_order(self, db):
        with pytest.raises(NotFound):
            OrderService.mark_picked_up("00000000-0000-0000-0000-000000000000")


@pytest.mark.django_db
class TestCancel:
    def test_cancel_before_scheduling_releases_capacity(self, order, bake_slot):
        bake_slot.refresh_from_db()
        assert bake_slot.current_orders == 2

        OrderService.cancel(order)

        order.refresh_from_db()
        bake_slot.refresh_from_db()
        assert order.status == Order.OrderStatus.CANCELED
        assert bake_slot.current_orders == 0

    def test_cancel_on_draft_sheet_removes_planned_lines(self, order, draft_sheet, bake_slot):
        PrepSheetService.add_order(draft_sheet.pk, order.pk)

        OrderService.cancel(order.pk)

        assert not PrepSheetItem.objects.filter(order=order).exists()
        bake_slot.refresh_from_db()
        assert bake_slot.current_orders == 0

    def test_cancel_after_baking_keeps_capacity(self, order, bake_slot):
        OrderService.schedule(order)
        OrderService.mark_baked(order)

        OrderService.cancel(order)

        bake_slot.refresh_from_db()
        assert bake_slot.current_orders == 2

    def test_cancel_twice_is_rejected(self, order):
        OrderService.cancel(order)

        with pytest.raises(InvalidTransition):
            OrderService.cancel(order)


@pytest.mark.django_db
class TestPayment:
    def test_payment_is_independent_of_status(self, order):
        OrderService.update_payment(order, Order.PaymentStatus.PAID, "venmo")
        OrderService.cancel(order)
        OrderService.update_payment(order, Order.PaymentStatus.REFUNDED)

        order.refresh_from_db()
        assert order.status == Order.OrderStatus.CANCELED
        assert order.payment_status == Order.PaymentStatus.REFUNDED
        assert order.payment_method == "venmo"

    def test_unknown_payment_status(self, order):
        with pytest.raises(InvalidOrder):
            OrderService.update_payment(order, "bitcoin")
