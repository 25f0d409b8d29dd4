from django.dispatch import Signal, receiver
import logging

logger = logging.getLogger(__name__)

# Custom signals that other apps can listen to. Both are sent from
# ``transaction.on_commit`` so receivers only ever see committed orders.
order_submitted = Signal()
order_ready = Signal()


@receiver(order_submitted)
def log_order_submitted(sender, order, **kwargs):
    logger.info(f"Order {order.pk} submitted for slot {order.bake_slot_id}")


@receiver(order_ready)
def log_order_ready(sender, order, **kwargs):
    logger.info(f"Order {order.pk} is ready for pickup")
