"""
Prep sheet planning and completion.

Completion is the one place where three entities change together: production
records are created, linked orders move to ``ready`` and the sheet is marked
completed. It runs as a single transaction so either all of it persists or
none of it does.
"""
from typing import Dict, List, Optional
import logging

from django.db import DatabaseError, IntegrityError, InterfaceError, OperationalError, transaction
from django.utils import timezone

from core_backend.db import storage_guard
from core_backend.exceptions import (
    DuplicateActiveSheet,
    EmptySheet,
    InvalidQuantity,
    NotFound,
    OrderNotEligible,
    PipelineError,
    SheetCompletionFailed,
    SheetNotDraft,
)
from orders.models import Order
from orders.services import OrderService
from production.models import ProductionRecord
from recipes.aggregation import AggregationItem, PrepSheetData, RecipeAggregator
from recipes.models import Flavor

from .models import PrepSheet, PrepSheetItem

logger = logging.getLogger(__name__)

ELIGIBLE_STATUSES = (Order.OrderStatus.SUBMITTED, Order.OrderStatus.CUTOFF_PASSED)


class PrepSheetService:
    @staticmethod
    def _lock_sheet(sheet_id) -> PrepSheet:
        try:
            return PrepSheet.objects.select_for_update().get(pk=sheet_id)
        except PrepSheet.DoesNotExist:
            raise NotFound(f"Prep sheet {sheet_id} not found.", sheet_id=sheet_id)

    @staticmethod
    def _require_draft(sheet: PrepSheet) -> None:
        if not sheet.is_draft:
            raise SheetNotDraft(sheet_id=sheet.pk)

    @staticmethod
    def _plan_order(sheet: PrepSheet, order: Order) -> List[PrepSheetItem]:
        """Adds one line per order item and schedules the order. Caller holds the sheet lock."""
        if order.bake_slot.date != sheet.bake_date:
            raise OrderNotEligible(
                f"Order is for {order.bake_slot.date}, not {sheet.bake_date}.",
                order_id=str(order.pk),
                sheet_id=sheet.pk,
            )
        if order.effective_status not in ELIGIBLE_STATUSES:
            raise OrderNotEligible(
                f"Order is {order.effective_status} and cannot be scheduled.",
                order_id=str(order.pk),
                status=order.effective_status,
            )

        items = PrepSheetItem.objects.bulk_create(
            [
                PrepSheetItem(sheet=sheet, order=order, flavor_id=item.flavor_id, planned_quantity=item.quantity)
                for item in order.items.all()
            ]
        )
        OrderService.schedule(order, sheet)
        return items

    @staticmethod
    @storage_guard
    def create(bake_date, notes: str = "") -> PrepSheet:
        """Creates a draft sheet. Only one draft may exist per bake date."""
        if PrepSheet.objects.filter(bake_date=bake_date, status=PrepSheet.Status.DRAFT).exists():
            raise DuplicateActiveSheet(bake_date=str(bake_date))
        try:
            with transaction.atomic():
                sheet = PrepSheet.objects.create(bake_date=bake_date, notes=notes)
        except IntegrityError:
            # Lost a race with another create for the same date.
            raise DuplicateActiveSheet(bake_date=str(bake_date))
        logger.info(f"Created prep sheet {sheet.pk} for {bake_date}")
        return sheet

    @staticmethod
    @storage_guard
    @transaction.atomic
    def add_order(sheet_id, order_id) -> PrepSheet:
        sheet = PrepSheetService._lock_sheet(sheet_id)
        PrepSheetService._require_draft(sheet)
        order = OrderService.lock_order(order_id)

        items = PrepSheetService._plan_order(sheet, order)
        logger.info(f"Added order {order.pk} to prep sheet {sheet.pk} ({len(items)} lines)")
        return sheet

    @staticmethod
    @storage_guard
    @transaction.atomic
    def remove_order(sheet_id, order_id) -> PrepSheet:
        sheet = PrepSheetService._lock_sheet(sheet_id)
        PrepSheetService._require_draft(sheet)

        removed, _ = PrepSheetItem.objects.filter(sheet=sheet, order_id=order_id).delete()
        if not removed:
            raise OrderNotEligible("Order is not on this prep sheet.", order_id=str(order_id), sheet_id=sheet.pk)

        OrderService.unschedule(order_id)
        logger.info(f"Removed order {order_id} from prep sheet {sheet.pk}")
        return sheet

    @staticmethod
    @storage_guard
    @transaction.atomic
    def add_eligible_orders(sheet_id) -> List[Order]:
        """Schedules every submitted order for the sheet's bake date."""
        sheet = PrepSheetService._lock_sheet(sheet_id)
        PrepSheetService._require_draft(sheet)

        orders = list(
            Order.objects.select_for_update()
            .select_related("bake_slot")
            .filter(bake_slot__date=sheet.bake_date, status__in=ELIGIBLE_STATUSES)
            .order_by("created_at")
        )
        for order in orders:
            PrepSheetService._plan_order(sheet, order)

        logger.info(f"Added {len(orders)} eligible orders to prep sheet {sheet.pk}")
        return orders

    @staticmethod
    @storage_guard
    @transaction.atomic
    def add_extra(sheet_id, flavor_id, quantity: int) -> PrepSheetItem:
        if not isinstance(quantity, int) or quantity < 1:
            raise InvalidQuantity("Extra quantity must be at least 1.", quantity=quantity)
        if not Flavor.objects.filter(pk=flavor_id).exists():
            raise NotFound(f"Flavor {flavor_id} not found.", flavor_id=flavor_id)

        sheet = PrepSheetService._lock_sheet(sheet_id)
        PrepSheetService._require_draft(sheet)

        item = PrepSheetItem.objects.create(sheet=sheet, flavor_id=flavor_id, planned_quantity=quantity)
        logger.info(f"Added {quantity} extra loaves of flavor {flavor_id} to prep sheet {sheet.pk}")
        return item

    @staticmethod
    @storage_guard
    @transaction.atomic
    def remove_extra(item_id) -> None:
        try:
            item = PrepSheetItem.objects.get(pk=item_id, order__isnull=True)
        except PrepSheetItem.DoesNotExist:
            raise NotFound(f"Extra item {item_id} not found.", item_id=item_id)

        sheet = PrepSheetService._lock_sheet(item.sheet_id)
        PrepSheetService._require_draft(sheet)
        item.delete()
        logger.info(f"Removed extra item {item_id} from prep sheet {sheet.pk}")

    @staticmethod
    def _resolve_actuals(items: List[PrepSheetItem], actual_quantities: Dict) -> Dict[int, int]:
        """Actual quantity per item id; omitted items default to their planned quantity."""
        known = {item.pk for item in items}
        given = {}
        for key, value in actual_quantities.items():
            try:
                item_id = int(key)
            except (TypeError, ValueError):
                raise InvalidQuantity(f"Unknown prep sheet item {key}.", item_id=key)
            if item_id not in known:
                raise InvalidQuantity(f"Unknown prep sheet item {key}.", item_id=key)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise InvalidQuantity(
                    "Actual quantities must be whole numbers of zero or more.", item_id=item_id, quantity=value
                )
            given[item_id] = value

        return {item.pk: given.get(item.pk, item.planned_quantity) for item in items}

    @staticmethod
    @storage_guard
    def complete(sheet_id, actual_quantities: Optional[Dict] = None, acting_user=None) -> PrepSheet:
        """
        Completes a draft sheet.

        For every item one pending ProductionRecord is created with the actual
        quantity (defaulting to planned). Items with an actual of 0 keep it on
        the line but get no record. Every linked order is marked baked
        and the sheet is closed. All of it happens in one transaction.
        ``order_ready`` is sent only after that transaction commits.

        Raises:
            NotFound, SheetNotDraft, EmptySheet, InvalidQuantity,
            SheetCompletionFailed when the database rejects any write,
            SyncUnavailable when storage is unreachable.
        """
        actual_quantities = actual_quantities or {}
        try:
            with transaction.atomic():
                sheet = PrepSheetService._lock_sheet(sheet_id)
                PrepSheetService._require_draft(sheet)

                items = list(sheet.items.all())
                if not items:
                    raise EmptySheet(sheet_id=sheet.pk)
                actuals = PrepSheetService._resolve_actuals(items, actual_quantities)

                records = []
                for item in items:
                    item.actual_quantity = actuals[item.pk]
                    # Nothing baked: the line keeps its actual of 0 but gets no record.
                    if not item.actual_quantity:
                        continue
                    records.append(
                        ProductionRecord(
                            prep_sheet=sheet,
                            order_id=item.order_id,
                            flavor_id=item.flavor_id,
                            quantity=item.actual_quantity,
                            status=ProductionRecord.Status.PENDING,
                            bake_date=sheet.bake_date,
                        )
                    )
                PrepSheetItem.objects.bulk_update(items, ["actual_quantity"])
                ProductionRecord.objects.bulk_create(records)

                order_ids = []
                for item in items:
                    if item.order_id and item.order_id not in order_ids:
                        order_ids.append(item.order_id)
                for order_id in order_ids:
                    OrderService.mark_baked(order_id)

                now = timezone.now()
                updated = PrepSheet.objects.filter(pk=sheet.pk, status=PrepSheet.Status.DRAFT).update(
                    status=PrepSheet.Status.COMPLETED,
                    completed_at=now,
                    completed_by=acting_user,
                    updated_at=now,
                )
                if updated != 1:
                    raise SheetNotDraft(sheet_id=sheet.pk)
        except PipelineError:
            raise
        except (OperationalError, InterfaceError):
            raise
        except DatabaseError as e:
            logger.error(f"Prep sheet {sheet_id} completion rolled back: {e}", exc_info=True)
            raise SheetCompletionFailed(sheet_id=sheet_id) from e

        logger.info(
            f"Completed prep sheet {sheet_id}: {len(records)} production records, {len(order_ids)} orders ready"
        )
        sheet.refresh_from_db()
        return sheet

    @staticmethod
    @storage_guard
    @transaction.atomic
    def delete(sheet_id) -> None:
        """Deletes a draft sheet. Scheduled orders go back to submitted; capacity is untouched."""
        sheet = PrepSheetService._lock_sheet(sheet_id)
        PrepSheetService._require_draft(sheet)

        order_ids = list(
            sheet.items.filter(order__isnull=False).values_list("order_id", flat=True).distinct()
        )
        sheet.delete()
        for order_id in order_ids:
            OrderService.unschedule(order_id)
        logger.info(f"Deleted prep sheet {sheet_id}; {len(order_ids)} orders back to submitted")

    @staticmethod
    def prep_data(sheet_id) -> PrepSheetData:
        """Scaled recipes for the sheet. Completed sheets use actual quantities."""
        try:
            sheet = PrepSheet.objects.get(pk=sheet_id)
        except PrepSheet.DoesNotExist:
            raise NotFound(f"Prep sheet {sheet_id} not found.", sheet_id=sheet_id)

        items = []
        for item in sheet.items.select_related("flavor"):
            quantity = item.planned_quantity
            if not sheet.is_draft and item.actual_quantity is not None:
                quantity = item.actual_quantity
            if quantity:
                items.append(AggregationItem(item.flavor_id, item.flavor.name, quantity))
        return RecipeAggregator.for_items(items)
