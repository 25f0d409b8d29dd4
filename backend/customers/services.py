"""
Customer services.
"""
from decimal import Decimal
import logging
import re

from django.db.models import F
from django.utils import timezone

from core_backend.config import app_settings
from core_backend.utils.pii import PIIProtection

from .models import Customer

logger = logging.getLogger(__name__)

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_text(value: str, max_length: int) -> str:
    """Strip control characters and surrounding whitespace, then truncate."""
    return CONTROL_CHARS.sub("", value or "").strip()[:max_length]


class CustomerService:
    """Finds customers at order submission and keeps their order statistics."""

    @staticmethod
    def find_or_create(data: dict) -> Customer:
        """
        Returns the customer matching ``data['email']`` (case-insensitive),
        creating one from the sanitized contact details when none exists.
        Existing records keep their stored name and phone.
        """
        max_name = app_settings.max_name_length
        email = Customer.objects.normalize_email(data["email"])

        customer = Customer.objects.filter(email=email).first()
        if customer is not None:
            return customer

        sms_opt_in = bool(data.get("sms_opt_in", False))
        customer = Customer.objects.create(
            first_name=sanitize_text(data.get("first_name", ""), max_name),
            last_name=sanitize_text(data.get("last_name", ""), max_name),
            email=email,
            phone=re.sub(r"[^\d+]", "", data.get("phone", "")),
            notification_pref=data.get("notification_pref") or Customer.NotificationPreference.EMAIL,
            sms_opt_in=sms_opt_in,
            sms_opt_in_date=timezone.now() if sms_opt_in else None,
        )
        logger.info(f"Created customer {customer.pk} ({PIIProtection.mask_email(email)})")
        return customer

    @staticmethod
    def record_order(customer: Customer, amount: Decimal) -> None:
        """Adds one order of ``amount`` to the customer's statistics."""
        now = timezone.now()
        Customer.objects.filter(pk=customer.pk).update(
            total_orders=F("total_orders") + 1,
            total_spent=F("total_spent") + amount,
            last_order_date=now,
            updated_at=now,
        )
        Customer.objects.filter(pk=customer.pk, first_order_date__isnull=True).update(first_order_date=now)
        customer.refresh_from_db(fields=["total_orders", "total_spent", "first_order_date", "last_order_date"])
