"""
Production ledger: dispositions of baked loaves.

Dispositions are not a state machine. Staff may move a record between any of
the statuses to correct the books after the fact.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from django.db import transaction

from core_backend.db import storage_guard
from core_backend.exceptions import InvalidSalePrice, InvalidSplit, InvalidTransition, NotFound
from orders.services import OrderService

from .models import ProductionRecord

logger = logging.getLogger(__name__)


@dataclass
class DispositionTotals:
    records: int = 0
    loaves: int = 0


@dataclass
class FlavorProductionTotals:
    flavor_id: int
    flavor_name: str
    loaves: int = 0
    sold: int = 0
    revenue: Decimal = Decimal("0.00")


@dataclass
class ProductionSummary:
    total_loaves: int = 0
    sold_revenue: Decimal = Decimal("0.00")
    by_status: Dict[str, DispositionTotals] = field(default_factory=dict)
    by_flavor: List[FlavorProductionTotals] = field(default_factory=list)


class ProductionService:
    @staticmethod
    def _lock_record(record_id) -> ProductionRecord:
        try:
            return ProductionRecord.objects.select_for_update().get(pk=record_id)
        except ProductionRecord.DoesNotExist:
            raise NotFound(f"Production record {record_id} not found.", record_id=record_id)

    @staticmethod
    def _validate_status(status: str) -> None:
        if status not in ProductionRecord.Status.values:
            raise InvalidTransition(f"Unknown production status '{status}'.", status=status)

    @staticmethod
    def _validate_sale_price(sale_price) -> Decimal:
        try:
            price = Decimal(str(sale_price))
        except ArithmeticError:
            raise InvalidSalePrice(sale_price=str(sale_price))
        if not price.is_finite() or price < 0:
            raise InvalidSalePrice(sale_price=str(sale_price))
        return price

    @staticmethod
    @storage_guard
    @transaction.atomic
    def update(record_id, status: str, sale_price=None, notes: Optional[str] = None) -> ProductionRecord:
        """
        Sets a record's disposition. A sold record needs a per-loaf sale price
        of zero or more; any other status clears the price.
        """
        ProductionService._validate_status(status)
        record = ProductionService._lock_record(record_id)

        if status == ProductionRecord.Status.SOLD:
            if sale_price is None:
                raise InvalidSalePrice(record_id=record.pk)
            record.sale_price = ProductionService._validate_sale_price(sale_price)
        else:
            record.sale_price = None

        previous = record.status
        record.status = status
        if notes is not None:
            record.notes = notes
        record.save(update_fields=["status", "sale_price", "notes", "updated_at"])
        logger.info(f"Production record {record.pk}: {previous} -> {status}")
        return record

    @staticmethod
    @storage_guard
    @transaction.atomic
    def split(record_id, split_quantity: int, new_status: str, sale_price=None) -> ProductionRecord:
        """
        Moves ``split_quantity`` loaves into a new record with ``new_status``.
        The original keeps the rest, so the total number of loaves is unchanged.
        """
        ProductionService._validate_status(new_status)
        original = ProductionService._lock_record(record_id)

        if (
            not isinstance(split_quantity, int)
            or isinstance(split_quantity, bool)
            or split_quantity < 1
            or split_quantity >= original.quantity
        ):
            raise InvalidSplit(record_id=original.pk, quantity=original.quantity, split_quantity=split_quantity)

        price = None
        if new_status == ProductionRecord.Status.SOLD and sale_price is not None:
            price = ProductionService._validate_sale_price(sale_price)

        original.quantity -= split_quantity
        original.save(update_fields=["quantity", "updated_at"])

        new_record = ProductionRecord.objects.create(
            prep_sheet_id=original.prep_sheet_id,
            order_id=original.order_id,
            flavor_id=original.flavor_id,
            bake_date=original.bake_date,
            quantity=split_quantity,
            status=new_status,
            sale_price=price,
            split_from=original,
        )
        logger.info(
            f"Split {split_quantity} loaves from production record {original.pk} "
            f"into {new_record.pk} ({new_status}); {original.quantity} remain"
        )
        return new_record

    @staticmethod
    def update_order_payment(order_id, payment_status: str, payment_method: Optional[str] = None):
        """Sets payment on the record's order at pickup; same rules as the order view."""
        return OrderService.update_payment(order_id, payment_status, payment_method)

    @staticmethod
    def summary(date_from=None, date_to=None) -> ProductionSummary:
        """Loaves per disposition and sold revenue over an optional bake date range."""
        records = ProductionRecord.objects.all()
        if date_from is not None:
            records = records.filter(bake_date__gte=date_from)
        if date_to is not None:
            records = records.filter(bake_date__lte=date_to)

        summary = ProductionSummary(
            by_status={status: DispositionTotals() for status in ProductionRecord.Status.values}
        )
        flavors = {}
        for record in records.select_related("flavor"):
            totals = summary.by_status[record.status]
            totals.records += 1
            totals.loaves += record.quantity
            summary.total_loaves += record.quantity

            flavor_totals = flavors.get(record.flavor_id)
            if flavor_totals is None:
                flavor_totals = FlavorProductionTotals(record.flavor_id, record.flavor.name)
                flavors[record.flavor_id] = flavor_totals
            flavor_totals.loaves += record.quantity

            if record.status == ProductionRecord.Status.SOLD:
                revenue = (record.sale_price or Decimal("0.00")) * record.quantity
                summary.sold_revenue += revenue
                flavor_totals.sold += record.quantity
                flavor_totals.revenue += revenue

        summary.by_flavor = sorted(flavors.values(), key=lambda f: (f.flavor_name, f.flavor_id))
        return summary
