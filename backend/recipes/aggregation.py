"""
Recipe aggregation for prep sheets.

Turns a list of planned (flavor, quantity) items into per-flavor scaled
ingredient lists plus a combined shopping list for the whole bake.

Scaling is linear: a recipe describes one loaf, so every ingredient quantity
is multiplied by the total loaves planned for that flavor. Steps are carried
through unscaled. Combined totals are keyed by (name, unit); no unit
conversion is attempted, so "flour/g" and "flour/kg" stay separate lines.

``aggregate`` is pure and does not touch the database. ``RecipeAggregator``
loads recipes through the ORM and delegates to it.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class IngredientAmount:
    name: str
    quantity: Decimal
    unit: str

    @classmethod
    def from_dict(cls, data: dict) -> "IngredientAmount":
        return cls(
            name=data["name"],
            quantity=Decimal(str(data.get("quantity", 0))),
            unit=data.get("unit", "") or "",
        )

    def scaled(self, factor) -> "IngredientAmount":
        return IngredientAmount(self.name, self.quantity * factor, self.unit)


@dataclass(frozen=True)
class RecipeStep:
    order: int
    instruction: str
    duration_minutes: Optional[int] = None


@dataclass(frozen=True)
class RecipeDefinition:
    """Ingredient quantities for one loaf of a flavor."""
    flavor_id: int
    base_ingredients: Tuple[IngredientAmount, ...] = ()
    fold_ingredients: Tuple[IngredientAmount, ...] = ()
    lamination_ingredients: Tuple[IngredientAmount, ...] = ()
    steps: Tuple[RecipeStep, ...] = ()

    @classmethod
    def from_recipe(cls, recipe) -> "RecipeDefinition":
        """Build from a ``recipes.models.Recipe`` row."""
        return cls(
            flavor_id=recipe.flavor_id,
            base_ingredients=tuple(IngredientAmount.from_dict(i) for i in recipe.base_ingredients or []),
            fold_ingredients=tuple(IngredientAmount.from_dict(i) for i in recipe.fold_ingredients or []),
            lamination_ingredients=tuple(IngredientAmount.from_dict(i) for i in recipe.lamination_ingredients or []),
            steps=tuple(
                sorted(
                    (
                        RecipeStep(
                            order=s["order"],
                            instruction=s["instruction"],
                            duration_minutes=s.get("duration_minutes"),
                        )
                        for s in recipe.steps or []
                    ),
                    key=lambda s: s.order,
                )
            ),
        )


@dataclass(frozen=True)
class AggregationItem:
    """One planned line: a flavor and how many loaves of it."""
    flavor_id: int
    flavor_name: str
    quantity: int


@dataclass
class FlavorPrepData:
    flavor_id: int
    flavor_name: str
    total_quantity: int
    base_ingredients: List[IngredientAmount] = field(default_factory=list)
    fold_ingredients: List[IngredientAmount] = field(default_factory=list)
    lamination_ingredients: List[IngredientAmount] = field(default_factory=list)
    steps: List[RecipeStep] = field(default_factory=list)
    no_recipe: bool = False


@dataclass
class PrepSheetData:
    flavors: List[FlavorPrepData] = field(default_factory=list)
    combined_ingredients: List[IngredientAmount] = field(default_factory=list)

    @property
    def total_loaves(self) -> int:
        return sum(f.total_quantity for f in self.flavors)

    @property
    def flavors_without_recipe(self) -> List[FlavorPrepData]:
        return [f for f in self.flavors if f.no_recipe]


def aggregate(
    items: Iterable[AggregationItem],
    recipes: Mapping[int, RecipeDefinition],
) -> PrepSheetData:
    """
    Aggregate planned items into scaled per-flavor recipes.

    Args:
        items: planned lines; several lines may share a flavor.
        recipes: recipe per flavor id. Flavors missing here are reported with
            ``no_recipe=True`` and empty ingredient lists.

    Returns:
        PrepSheetData with flavors sorted by (name, id) and combined
        ingredients sorted by (name, unit).
    """
    totals: Dict[int, int] = {}
    names: Dict[int, str] = {}
    for item in items:
        totals[item.flavor_id] = totals.get(item.flavor_id, 0) + item.quantity
        names.setdefault(item.flavor_id, item.flavor_name)

    flavors = []
    combined: Dict[Tuple[str, str], Decimal] = {}

    for flavor_id in sorted(totals, key=lambda fid: (names[fid], fid)):
        quantity = totals[flavor_id]
        recipe = recipes.get(flavor_id)
        if recipe is None:
            flavors.append(
                FlavorPrepData(
                    flavor_id=flavor_id,
                    flavor_name=names[flavor_id],
                    total_quantity=quantity,
                    no_recipe=True,
                )
            )
            continue

        base = [i.scaled(quantity) for i in recipe.base_ingredients]
        fold = [i.scaled(quantity) for i in recipe.fold_ingredients]
        lamination = [i.scaled(quantity) for i in recipe.lamination_ingredients]

        for ingredient in base + fold + lamination:
            key = (ingredient.name, ingredient.unit)
            combined[key] = combined.get(key, Decimal("0")) + ingredient.quantity

        flavors.append(
            FlavorPrepData(
                flavor_id=flavor_id,
                flavor_name=names[flavor_id],
                total_quantity=quantity,
                base_ingredients=base,
                fold_ingredients=fold,
                lamination_ingredients=lamination,
                steps=list(recipe.steps),
            )
        )

    return PrepSheetData(
        flavors=flavors,
        combined_ingredients=[
            IngredientAmount(name, total, unit) for (name, unit), total in sorted(combined.items())
        ],
    )


class RecipeAggregator:
    """Loads recipes for planned items and aggregates them."""

    @staticmethod
    def for_items(items: List[AggregationItem]) -> PrepSheetData:
        from recipes.models import Recipe

        flavor_ids = {item.flavor_id for item in items}
        recipes = {
            recipe.flavor_id: RecipeDefinition.from_recipe(recipe)
            for recipe in Recipe.objects.filter(flavor_id__in=flavor_ids)
        }
        return aggregate(items, recipes)
