"""
Customer records for pre-order submissions.
"""
from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.pii import PIIProtection


class CustomerManager(models.Manager):
    """Custom manager for Customer model"""

    def normalize_email(self, email):
        if email:
            email = email.strip().lower()
        return email

    def get_by_email(self, email):
        return self.get(email=self.normalize_email(email))


class Customer(models.Model):
    """
    A customer who places pre-orders. Matched by email on every submission,
    so repeat customers accumulate order statistics on one record.
    """

    class NotificationPreference(models.TextChoices):
        EMAIL = "email", _("Email")
        SMS = "sms", _("SMS")
        BOTH = "both", _("Email and SMS")

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(unique=True, help_text=_("Stored lower-cased."))
    phone = models.CharField(max_length=20)
    notification_pref = models.CharField(
        max_length=10,
        choices=NotificationPreference.choices,
        default=NotificationPreference.EMAIL,
    )
    sms_opt_in = models.BooleanField(default=False)
    sms_opt_in_date = models.DateTimeField(null=True, blank=True)

    # Order statistics, maintained by CustomerService.record_order
    total_orders = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    first_order_date = models.DateTimeField(null=True, blank=True)
    last_order_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomerManager()

    class Meta:
        verbose_name = _("Customer")
        verbose_name_plural = _("Customers")
        ordering = ["last_name", "first_name"]
        indexes = [
            models.Index(fields=["last_name", "first_name"], name="customer_name_idx"),
        ]

    def __str__(self):
        return PIIProtection.safe_str_representation(self)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()
