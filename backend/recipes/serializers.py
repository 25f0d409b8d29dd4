from rest_framework import serializers

from .models import Flavor


class FlavorSerializer(serializers.ModelSerializer):
    has_recipe = serializers.SerializerMethodField()

    class Meta:
        model = Flavor
        fields = ["id", "name", "description", "sizes", "is_active", "sort_order", "has_recipe"]
        read_only_fields = fields

    def get_has_recipe(self, obj):
        return hasattr(obj, "recipe")


class IngredientAmountSerializer(serializers.Serializer):
    name = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)
    unit = serializers.CharField(allow_blank=True)


class RecipeStepSerializer(serializers.Serializer):
    order = serializers.IntegerField()
    instruction = serializers.CharField()
    duration_minutes = serializers.IntegerField(allow_null=True)


class FlavorPrepDataSerializer(serializers.Serializer):
    flavor_id = serializers.IntegerField()
    flavor_name = serializers.CharField()
    total_quantity = serializers.IntegerField()
    base_ingredients = IngredientAmountSerializer(many=True)
    fold_ingredients = IngredientAmountSerializer(many=True)
    lamination_ingredients = IngredientAmountSerializer(many=True)
    steps = RecipeStepSerializer(many=True)
    no_recipe = serializers.BooleanField()


class PrepSheetDataSerializer(serializers.Serializer):
    """Renders a ``recipes.aggregation.PrepSheetData``."""
    flavors = FlavorPrepDataSerializer(many=True)
    combined_ingredients = IngredientAmountSerializer(many=True)
    total_loaves = serializers.IntegerField()
