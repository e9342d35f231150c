"""
Inventory projection and deduction.

Projection is advisory: it runs before a schedule is created and reports
shortfalls without blocking anything. Deduction is authoritative: it runs
once per item completion and removes ingredients from stock.

Quantities follow the recipe convention: an ingredient line holds the amount
needed for one yield unit, so an item of quantity N needs ``per_unit * N``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from bakeplan.protocols.repositories import InventoryRepository, RecipeRepository
from bakeplan.results import Deduction, InventoryShortage

logger = logging.getLogger(__name__)


def project_requirements(
    items: Iterable,
    recipes: RecipeRepository,
    inventory: InventoryRepository,
) -> list[InventoryShortage]:
    """
    Compare the ingredients needed by ``items`` with current stock.

    Requirements are summed per distinct inventory item across all items
    before comparing, so two items drawing on the same flour are checked
    together. Exactly sufficient stock is not a shortage.

    Args:
        items: Anything with ``recipe_id`` and ``quantity``
        recipes: Recipe repository
        inventory: Inventory repository

    Returns:
        One InventoryShortage per short ingredient, in first-seen order
    """
    required: dict[int, Decimal] = defaultdict(Decimal)
    units: dict[int, str] = {}
    ingredient_cache: dict[int, list] = {}

    for item in items:
        if item.recipe_id not in ingredient_cache:
            ingredient_cache[item.recipe_id] = recipes.get_ingredients(item.recipe_id)

        for line in ingredient_cache[item.recipe_id]:
            required[line.inventory_item_id] += line.quantity_per_unit * item.quantity
            units.setdefault(line.inventory_item_id, line.unit)

    shortages = []
    for inventory_item_id, amount in required.items():
        stock = inventory.get_stock(inventory_item_id)
        if stock is None:
            continue
        if amount > stock.current_stock:
            shortages.append(
                InventoryShortage(
                    inventory_item_id=inventory_item_id,
                    name=stock.name or str(inventory_item_id),
                    required=amount,
                    available=stock.current_stock,
                    unit=stock.unit or units[inventory_item_id],
                )
            )

    return shortages


def deduct_for_item(
    item,
    recipes: RecipeRepository,
    inventory: InventoryRepository,
) -> list[Deduction]:
    """
    Remove the ingredients consumed by a completed item from stock.

    Each ingredient is decremented by the repository in a single atomic
    update floored at zero. A recipe without ingredients deducts nothing.

    Returns:
        One Deduction per ingredient actually decremented
    """
    deductions = []

    for line in recipes.get_ingredients(item.recipe_id):
        amount = line.quantity_per_unit * item.quantity
        if amount <= 0:
            continue

        if not inventory.decrement_stock(line.inventory_item_id, amount):
            logger.warning(
                f"Inventory item {line.inventory_item_id} missing, nothing deducted",
                extra={"item_id": item.pk, "inventory_item_id": line.inventory_item_id},
            )
            continue

        deductions.append(
            Deduction(inventory_item_id=line.inventory_item_id, quantity=amount, unit=line.unit)
        )
        logger.info(
            f"Deducted {amount} {line.unit} of inventory item {line.inventory_item_id}",
            extra={
                "item_id": item.pk,
                "inventory_item_id": line.inventory_item_id,
                "quantity": float(amount),
            },
        )

    return deductions
