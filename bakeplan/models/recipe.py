"""
Recipe and RecipeIngredient models.

Recipe = what a production item makes, in yield units.
RecipeIngredient = inventory item consumed per ONE yield unit of the recipe.

Read-only from the scheduling engine's point of view.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords


class Recipe(models.Model):
    """
    Production recipe.

    Ingredient quantities are stored per yield unit, so a production item of
    quantity N consumes N x ingredient.quantity of each ingredient.
    """

    # UUID for external references
    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        verbose_name=_("UUID"),
    )

    code = models.SlugField(
        unique=True,
        max_length=50,
        verbose_name=_("Code"),
        help_text=_("Unique identifier (e.g. croissant-v1)"),
    )
    name = models.CharField(
        max_length=200,
        verbose_name=_("Name"),
    )

    yield_quantity = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("1"),
        verbose_name=_("Yield"),
        help_text=_("Units produced by one batch of the recipe"),
    )
    yield_unit = models.CharField(
        max_length=20,
        default="un",
        verbose_name=_("Yield unit"),
    )

    is_active = models.BooleanField(
        default=True,
        verbose_name=_("Active"),
        help_text=_("Recipe can be used for new production items"),
    )

    notes = models.TextField(
        blank=True,
        verbose_name=_("Notes"),
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    # History
    history = HistoricalRecords()

    class Meta:
        db_table = "bakeplan_recipe"
        verbose_name = _("Recipe")
        verbose_name_plural = _("Recipes")
        ordering = ["name"]

    def clean(self):
        super().clean()
        if self.yield_quantity is not None and self.yield_quantity <= 0:
            raise ValidationError({"yield_quantity": _("Must be greater than zero.")})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.name


class RecipeIngredient(models.Model):
    """
    Ingredient of a recipe.

    quantity is the amount of the inventory item needed for ONE yield unit.
    """

    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.CASCADE,
        related_name="ingredients",
        verbose_name=_("Recipe"),
    )
    inventory_item = models.ForeignKey(
        "bakeplan.InventoryItem",
        on_delete=models.PROTECT,
        related_name="recipe_ingredients",
        verbose_name=_("Inventory item"),
    )

    quantity = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        verbose_name=_("Quantity"),
        help_text=_("Quantity per yield unit"),
    )
    unit = models.CharField(
        max_length=20,
        default="kg",
        verbose_name=_("Unit"),
        help_text=_("kg, g, L, un..."),
    )
    sort_order = models.PositiveSmallIntegerField(
        default=0,
        verbose_name=_("Order"),
    )

    notes = models.TextField(
        blank=True,
        verbose_name=_("Notes"),
    )

    class Meta:
        db_table = "bakeplan_recipe_ingredient"
        verbose_name = _("Ingredient")
        verbose_name_plural = _("Ingredients")
        ordering = ["recipe", "sort_order", "id"]
        unique_together = [["recipe", "inventory_item"]]

    def __str__(self) -> str:
        unit_str = f" {self.unit}" if self.unit else ""
        return f"{self.inventory_item} ({self.quantity}{unit_str})"
