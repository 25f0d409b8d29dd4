"""
Masking helpers for customer contact details in logs and admin listings.
"""
import re
from typing import Optional


class PIIProtection:
    """Utilities for keeping customer contact details out of logs."""

    @staticmethod
    def mask_email(email: Optional[str]) -> str:
        """
        Example: jane.baker@example.com -> ja********@example.com
        """
        if not email or "@" not in email:
            return email or ""
        local, domain = email.split("@", 1)
        if len(local) <= 2:
            return f"{local[:1]}*@{domain}"
        return f"{local[:2]}{'*' * (len(local) - 2)}@{domain}"

    @staticmethod
    def mask_phone(phone: Optional[str]) -> str:
        """
        Keep the last four digits only. Example: 555-123-4567 -> ******4567
        """
        if not phone:
            return phone or ""
        digits = re.sub(r"\D", "", phone)
        if len(digits) < 4:
            return "*" * len(digits)
        return "*" * (len(digits) - 4) + digits[-4:]

    @staticmethod
    def mask_name(name: Optional[str]) -> str:
        if not name:
            return name or ""
        return name[0] + "*" * (len(name) - 1)

    @staticmethod
    def safe_str_representation(obj, email_field: str = "email", name_fields: list = None) -> str:
        if name_fields is None:
            name_fields = ["first_name", "last_name"]

        parts = [PIIProtection.mask_name(getattr(obj, f, None)) for f in name_fields if getattr(obj, f, None)]
        email = getattr(obj, email_field, None)
        if email:
            parts.append(f"({PIIProtection.mask_email(email)})")

        if not parts:
            return f"{obj.__class__.__name__} #{getattr(obj, 'pk', 'unknown')}"
        return " ".join(parts)
