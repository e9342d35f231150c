"""
Tests for inventory projection and deduction (bakeplan.services.inventory)
and the ORM inventory repository underneath them.
"""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from bakeplan.adapters.orm import OrmInventoryRepository, OrmRecipeRepository
from bakeplan.models import InventoryItem, Recipe, RecipeIngredient
from bakeplan.results import InventoryShortage
from bakeplan.services.inventory import deduct_for_item, project_requirements


@pytest.fixture
def flour(db):
    return InventoryItem.objects.create(name="Flour", unit="kg", current_stock=Decimal("10"))


@pytest.fixture
def eggs(db):
    return InventoryItem.objects.create(name="Eggs", unit="un", current_stock=Decimal("12"))


@pytest.fixture
def brioche(db, flour, eggs):
    recipe = Recipe.objects.create(code="brioche", name="Brioche")
    RecipeIngredient.objects.create(recipe=recipe, inventory_item=flour, quantity=Decimal("0.25"), unit="kg")
    RecipeIngredient.objects.create(recipe=recipe, inventory_item=eggs, quantity=Decimal("2"), unit="un")
    return recipe


@pytest.fixture
def baguette(db, flour):
    recipe = Recipe.objects.create(code="baguette", name="Baguette")
    RecipeIngredient.objects.create(recipe=recipe, inventory_item=flour, quantity=Decimal("0.3"), unit="kg")
    return recipe


@pytest.fixture
def recipes():
    return OrmRecipeRepository()


@pytest.fixture
def inventory():
    return OrmInventoryRepository()


def planned(recipe, quantity):
    return SimpleNamespace(recipe_id=recipe.pk, quantity=quantity, pk=None)


class TestProjectRequirements:
    """Advisory shortfall projection."""

    def test_sufficient_stock(self, brioche, recipes, inventory):
        assert project_requirements([planned(brioche, 6)], recipes, inventory) == []

    def test_exactly_sufficient_is_not_a_shortage(self, brioche, flour, recipes, inventory):
        """40 x 0.25 kg = 10 kg of flour; 6 x 2 = 12 eggs."""
        assert project_requirements([planned(brioche, 6)], recipes, inventory) == []
        assert project_requirements([planned(brioche, 40)], recipes, inventory) == [
            InventoryShortage(
                inventory_item_id=InventoryItem.objects.get(name="Eggs").pk,
                name="Eggs",
                required=Decimal("80"),
                available=Decimal("12"),
                unit="un",
            )
        ]

    def test_summed_across_items(self, brioche, baguette, flour, recipes, inventory):
        """20 brioches (5 kg) + 20 baguettes (6 kg) need 11 kg of flour."""
        shortages = project_requirements(
            [planned(brioche, 6), planned(brioche, 14), planned(baguette, 20)], recipes, inventory
        )

        by_item = {s.inventory_item_id: s for s in shortages}
        assert by_item[flour.pk].required == Decimal("11")
        assert by_item[flour.pk].available == Decimal("10")
        assert by_item[flour.pk].shortage == Decimal("1")
        assert by_item[flour.pk].message == "Insufficient Flour: need 11 kg, have 10 kg"

    def test_ingredients_loaded_once_per_recipe(self, brioche, inventory):
        recipes = Mock(wraps=OrmRecipeRepository())

        project_requirements([planned(brioche, 1), planned(brioche, 2), planned(brioche, 3)], recipes, inventory)

        recipes.get_ingredients.assert_called_once_with(brioche.pk)

    def test_unknown_stock_skipped(self, brioche, recipes):
        inventory = Mock()
        inventory.get_stock.return_value = None

        assert project_requirements([planned(brioche, 100)], recipes, inventory) == []

    def test_does_not_modify_stock(self, brioche, flour, recipes, inventory):
        project_requirements([planned(brioche, 100)], recipes, inventory)

        flour.refresh_from_db()
        assert flour.current_stock == Decimal("10")


class TestDeductForItem:
    """Authoritative deduction on completion."""

    def test_deducts_every_ingredient(self, brioche, flour, eggs, recipes, inventory):
        deductions = deduct_for_item(planned(brioche, 4), recipes, inventory)

        flour.refresh_from_db()
        eggs.refresh_from_db()
        assert flour.current_stock == Decimal("9")
        assert eggs.current_stock == Decimal("4")
        assert [(d.inventory_item_id, d.quantity, d.unit) for d in deductions] == [
            (flour.pk, Decimal("1"), "kg"),
            (eggs.pk, Decimal("8"), "un"),
        ]

    def test_missing_inventory_item_skipped(self, brioche, recipes, caplog):
        inventory = Mock()
        inventory.decrement_stock.return_value = False

        deductions = deduct_for_item(planned(brioche, 1), recipes, inventory)

        assert deductions == []
        assert inventory.decrement_stock.call_count == 2
        assert "nothing deducted" in caplog.text

    def test_recipe_without_ingredients(self, db, recipes, inventory):
        recipe = Recipe.objects.create(code="water", name="Water")

        assert deduct_for_item(planned(recipe, 3), recipes, inventory) == []


class TestOrmInventoryRepository:
    """Stock never goes below zero."""

    def test_decrement(self, flour, inventory):
        assert inventory.decrement_stock(flour.pk, Decimal("2.5")) is True

        flour.refresh_from_db()
        assert flour.current_stock == Decimal("7.5")

    def test_decrement_floors_at_zero(self, flour, inventory):
        inventory.decrement_stock(flour.pk, Decimal("25"))

        flour.refresh_from_db()
        assert flour.current_stock == Decimal("0")

    def test_decrement_unknown_item(self, db, inventory):
        assert inventory.decrement_stock(999, Decimal("1")) is False

    def test_set_stock_floors_at_zero(self, flour, inventory):
        inventory.set_stock(flour.pk, Decimal("-3"))

        flour.refresh_from_db()
        assert flour.current_stock == Decimal("0")

    def test_get_stock(self, flour, inventory):
        stock = inventory.get_stock(flour.pk)

        assert stock.current_stock == Decimal("10")
        assert stock.unit == "kg"
        assert stock.name == "Flour"
        assert inventory.get_stock(999) is None
