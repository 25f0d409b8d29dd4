from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _


def validate_sizes(value):
    """Sizes are a list of {"name": str, "price": number} with unique names."""
    if not isinstance(value, list):
        raise ValidationError(_("Sizes must be a list."))
    seen = set()
    for size in value:
        if not isinstance(size, dict) or not size.get("name"):
            raise ValidationError(_("Each size needs a name."))
        try:
            price = Decimal(str(size.get("price")))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(_("Size '%(name)s' has an invalid price."), params={"name": size["name"]})
        if price < 0:
            raise ValidationError(_("Size '%(name)s' has a negative price."), params={"name": size["name"]})
        if size["name"] in seen:
            raise ValidationError(_("Duplicate size '%(name)s'."), params={"name": size["name"]})
        seen.add(size["name"])


def validate_ingredients(value):
    """Ingredients are a list of {"name": str, "quantity": number >= 0, "unit": str}."""
    if not isinstance(value, list):
        raise ValidationError(_("Ingredients must be a list."))
    for ingredient in value:
        if not isinstance(ingredient, dict) or not ingredient.get("name"):
            raise ValidationError(_("Each ingredient needs a name."))
        try:
            quantity = Decimal(str(ingredient.get("quantity")))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(
                _("Ingredient '%(name)s' has an invalid quantity."), params={"name": ingredient["name"]}
            )
        if quantity < 0:
            raise ValidationError(
                _("Ingredient '%(name)s' has a negative quantity."), params={"name": ingredient["name"]}
            )
        if not isinstance(ingredient.get("unit", ""), str):
            raise ValidationError(_("Ingredient '%(name)s' has an invalid unit."), params={"name": ingredient["name"]})


def validate_steps(value):
    """Steps are a list of {"order": int, "instruction": str, "duration_minutes": int?}."""
    if not isinstance(value, list):
        raise ValidationError(_("Steps must be a list."))
    for step in value:
        if not isinstance(step, dict) or not step.get("instruction"):
            raise ValidationError(_("Each step needs an instruction."))
        if not isinstance(step.get("order"), int):
            raise ValidationError(_("Each step needs an integer order."))


class Flavor(models.Model):
    """
    A bread offered for pre-order. Prices live on the sizes, e.g.
    ``[{"name": "regular", "price": "12.00"}, {"name": "mini", "price": "6.00"}]``.
    """

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    sizes = models.JSONField(default=list, validators=[validate_sizes])
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Flavor")
        verbose_name_plural = _("Flavors")
        ordering = ["sort_order", "name"]

    def __str__(self):
        return self.name

    def price_for(self, size_name: str):
        """Returns the catalog price for ``size_name`` or None if the flavor has no such size."""
        for size in self.sizes or []:
            if size.get("name") == size_name:
                return Decimal(str(size["price"]))
        return None


class Recipe(models.Model):
    """
    Ingredient quantities for a reference batch of one loaf, split into the
    three mixing stages, plus ordered instruction steps.
    """

    flavor = models.OneToOneField(Flavor, on_delete=models.CASCADE, related_name="recipe")
    name = models.CharField(max_length=200)
    base_ingredients = models.JSONField(default=list, validators=[validate_ingredients])
    fold_ingredients = models.JSONField(default=list, blank=True, validators=[validate_ingredients])
    lamination_ingredients = models.JSONField(default=list, blank=True, validators=[validate_ingredients])
    steps = models.JSONField(default=list, blank=True, validators=[validate_steps])
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Recipe")
        verbose_name_plural = _("Recipes")
        ordering = ["name"]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)
