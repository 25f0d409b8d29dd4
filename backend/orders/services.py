"""
Order lifecycle.

    submitted -> cutoff_passed -> in_production -> ready -> picked_up

``canceled`` and ``no_show`` are reachable from every state before
``picked_up``; ``in_production -> submitted`` happens when an order is taken
off a draft prep sheet.
"""
from decimal import Decimal
from typing import Iterable, List, Optional, Union
import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction

from bake_slots.services import CapacityService
from core_backend.config import app_settings
from core_backend.db import storage_guard
from core_backend.exceptions import InvalidOrder, InvalidTransition, NotFound
from customers.models import Customer
from customers.services import CustomerService, sanitize_text
from recipes.models import Flavor

from .models import Order, OrderItem
from .signals import order_ready, order_submitted

logger = logging.getLogger(__name__)


class OrderService:
    VALID_STATUS_TRANSITIONS = {
        Order.OrderStatus.SUBMITTED: [
            Order.OrderStatus.CUTOFF_PASSED,
            Order.OrderStatus.IN_PRODUCTION,
            Order.OrderStatus.CANCELED,
            Order.OrderStatus.NO_SHOW,
        ],
        Order.OrderStatus.CUTOFF_PASSED: [
            Order.OrderStatus.IN_PRODUCTION,
            Order.OrderStatus.CANCELED,
            Order.OrderStatus.NO_SHOW,
        ],
        Order.OrderStatus.IN_PRODUCTION: [
            Order.OrderStatus.READY,
            Order.OrderStatus.SUBMITTED,
            Order.OrderStatus.CANCELED,
            Order.OrderStatus.NO_SHOW,
        ],
        Order.OrderStatus.READY: [
            Order.OrderStatus.PICKED_UP,
            Order.OrderStatus.CANCELED,
            Order.OrderStatus.NO_SHOW,
        ],
        Order.OrderStatus.PICKED_UP: [],
        Order.OrderStatus.CANCELED: [],
        Order.OrderStatus.NO_SHOW: [],
    }

    # Statuses whose loaves still hold a place in the slot's capacity.
    CAPACITY_HOLDING_STATUSES = (
        Order.OrderStatus.SUBMITTED,
        Order.OrderStatus.CUTOFF_PASSED,
        Order.OrderStatus.IN_PRODUCTION,
    )

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return Order.objects.select_related("bake_slot", "customer").get(pk=order_id)
        except (Order.DoesNotExist, ValidationError, ValueError):
            raise NotFound(f"Order {order_id} not found.", order_id=str(order_id))

    @staticmethod
    def lock_order(order: Union[Order, str]) -> Order:
        order_id = order.pk if isinstance(order, Order) else order
        try:
            return Order.objects.select_for_update().select_related("bake_slot").get(pk=order_id)
        except (Order.DoesNotExist, ValidationError, ValueError):
            raise NotFound(f"Order {order_id} not found.", order_id=str(order_id))

    @staticmethod
    def _transition(order: Union[Order, str], new_status: str) -> Order:
        """
        Move a locked order to ``new_status``. Must run inside a transaction.
        A lazily expired cutoff is persisted as part of the same write.
        """
        locked = OrderService.lock_order(order)
        current = locked.effective_status

        if new_status not in OrderService.VALID_STATUS_TRANSITIONS.get(current, []):
            raise InvalidTransition(
                f"Cannot transition order from {current} to {new_status}.",
                order_id=str(locked.pk),
                current_status=current,
                requested_status=new_status,
            )

        locked.status = new_status
        locked.save(update_fields=["status", "updated_at"])
        logger.info(f"Order {locked.pk}: {current} -> {new_status}")

        if isinstance(order, Order):
            order.status = locked.status
            order.updated_at = locked.updated_at
        return locked

    @staticmethod
    def _price_items(items: Iterable[dict]) -> List[OrderItem]:
        """Validates item lines against the configured limits and prices them from the catalog."""
        items = list(items or [])
        if not items:
            raise InvalidOrder("Order must contain at least one item.")
        if len(items) > app_settings.max_items_per_order:
            raise InvalidOrder(
                f"Order cannot contain more than {app_settings.max_items_per_order} items.",
                item_count=len(items),
            )

        flavor_ids = {item.get("flavor_id") for item in items}
        flavors = {f.pk: f for f in Flavor.objects.filter(pk__in=flavor_ids, is_active=True)}

        lines = []
        for index, item in enumerate(items):
            quantity = item.get("quantity")
            if (
                not isinstance(quantity, int)
                or isinstance(quantity, bool)
                or quantity < 1
                or quantity > app_settings.max_quantity_per_item
            ):
                raise InvalidOrder(
                    f"Quantity must be between 1 and {app_settings.max_quantity_per_item}.",
                    item=index,
                    quantity=quantity,
                )

            flavor = flavors.get(item.get("flavor_id"))
            if flavor is None:
                raise InvalidOrder("This flavor is not available.", item=index, flavor_id=item.get("flavor_id"))

            size = item.get("size") or ""
            unit_price = flavor.price_for(size)
            if unit_price is None:
                raise InvalidOrder(
                    f"{flavor.name} is not offered in size '{size}'.", item=index, flavor_id=flavor.pk, size=size
                )

            lines.append(
                OrderItem(
                    flavor=flavor,
                    flavor_name=flavor.name,
                    size=size,
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=unit_price * quantity,
                )
            )
        return lines

    @staticmethod
    def _resolve_customer(customer: Union[Customer, dict]) -> Customer:
        if isinstance(customer, Customer):
            return customer
        email = (customer or {}).get("email", "")
        try:
            validate_email(email)
        except ValidationError:
            raise InvalidOrder("A valid email address is required.", field="email")
        return CustomerService.find_or_create(customer)

    @staticmethod
    @storage_guard
    @transaction.atomic
    def submit(bake_slot_id, items, customer: Union[Customer, dict], customer_notes: str = "") -> Order:
        """
        Creates an order after admitting its loaves against the bake slot.

        Totals are recomputed from catalog prices; any client-side price is
        ignored. If validation or admission fails nothing is written and the
        specific PipelineError propagates (SlotClosed vs CapacityExceeded etc).
        """
        lines = OrderService._price_items(items)
        total_amount = sum((line.total_price for line in lines), Decimal("0.00"))
        if total_amount > app_settings.max_order_total:
            raise InvalidOrder(
                f"Order total cannot exceed ${app_settings.max_order_total}.", total_amount=str(total_amount)
            )

        flavor_quantities = {}
        for line in lines:
            flavor_quantities[line.flavor_id] = flavor_quantities.get(line.flavor_id, 0) + line.quantity
        total_quantity = sum(flavor_quantities.values())

        # Validate the customer before touching capacity.
        customer = OrderService._resolve_customer(customer)

        CapacityService.try_commit(bake_slot_id, total_quantity, flavor_quantities)

        order = Order.objects.create(
            customer=customer,
            bake_slot_id=bake_slot_id,
            total_amount=total_amount,
            customer_notes=sanitize_text(customer_notes, app_settings.max_notes_length),
        )
        for line in lines:
            line.order = order
        OrderItem.objects.bulk_create(lines)

        CustomerService.record_order(customer, total_amount)

        logger.info(f"Order {order.pk} created: {total_quantity} loaves, ${total_amount}, slot {bake_slot_id}")
        transaction.on_commit(lambda: order_submitted.send(sender=Order, order=order))
        return order

    @staticmethod
    @transaction.atomic
    def schedule(order: Union[Order, str], prep_sheet=None) -> Order:
        """Marks an order as planned on a prep sheet."""
        locked = OrderService._transition(order, Order.OrderStatus.IN_PRODUCTION)
        if prep_sheet is not None:
            logger.info(f"Order {locked.pk} scheduled on prep sheet {prep_sheet.pk}")
        return locked

    @staticmethod
    @transaction.atomic
    def unschedule(order: Union[Order, str]) -> Order:
        return OrderService._transition(order, Order.OrderStatus.SUBMITTED)

    @staticmethod
    @transaction.atomic
    def mark_baked(order: Union[Order, str]) -> Order:
        locked = OrderService._transition(order, Order.OrderStatus.READY)
        transaction.on_commit(lambda: order_ready.send(sender=Order, order=locked))
        return locked

    @staticmethod
    @storage_guard
    @transaction.atomic
    def mark_picked_up(order: Union[Order, str]) -> Order:
        return OrderService._transition(order, Order.OrderStatus.PICKED_UP)

    @staticmethod
    def _remove_from_draft_sheets(order: Order) -> int:
        """Deletes the order's lines from draft prep sheets. Completed sheets are left alone."""
        from prep_sheets.models import PrepSheet, PrepSheetItem

        removed, _ = PrepSheetItem.objects.filter(order=order, sheet__status=PrepSheet.Status.DRAFT).delete()
        if removed:
            logger.info(f"Removed {removed} prep sheet lines for {order.status} order {order.pk}")
        return removed

    @staticmethod
    @storage_guard
    @transaction.atomic
    def mark_no_show(order: Union[Order, str]) -> Order:
        """
        Marks an order as not collected. An order still planned on a draft
        prep sheet is taken off it so the sheet can be completed or deleted.
        """
        no_show = OrderService._transition(order, Order.OrderStatus.NO_SHOW)
        OrderService._remove_from_draft_sheets(no_show)
        return no_show

    @staticmethod
    @storage_guard
    @transaction.atomic
    def cancel(order: Union[Order, str]) -> Order:
        """
        Cancels an order. Loaves that were not baked yet go back to the slot,
        and the order's lines are taken off any draft prep sheet.
        """
        locked = OrderService.lock_order(order)
        previous = locked.effective_status
        holds_capacity = previous in OrderService.CAPACITY_HOLDING_STATUSES

        canceled = OrderService._transition(locked, Order.OrderStatus.CANCELED)
        OrderService._remove_from_draft_sheets(canceled)

        if holds_capacity:
            CapacityService.release(canceled.bake_slot_id, canceled.total_quantity, canceled.flavor_quantities())

        if isinstance(order, Order):
            order.status = canceled.status
        return canceled

    @staticmethod
    @storage_guard
    @transaction.atomic
    def update_payment(order: Union[Order, str], payment_status: str, payment_method: Optional[str] = None) -> Order:
        """Payment is tracked independently of the order status; the last write wins."""
        if payment_status not in Order.PaymentStatus.values:
            raise InvalidOrder(f"Unknown payment status '{payment_status}'.", payment_status=payment_status)

        locked = OrderService.lock_order(order)
        locked.status = locked.effective_status
        locked.payment_status = payment_status
        update_fields = ["status", "payment_status", "updated_at"]
        if payment_method is not None:
            locked.payment_method = payment_method or None
            update_fields.append("payment_method")
        locked.save(update_fields=update_fields)
        logger.info(f"Order {locked.pk} payment -> {payment_status}")
        return locked

    @staticmethod
    @storage_guard
    @transaction.atomic
    def update_admin_notes(order: Union[Order, str], notes: str) -> Order:
        locked = OrderService.lock_order(order)
        locked.status = locked.effective_status
        locked.admin_notes = sanitize_text(notes, app_settings.max_notes_length)
        locked.save(update_fields=["status", "admin_notes", "updated_at"])
        return locked
