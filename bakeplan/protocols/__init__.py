"""
Bakeplan Protocols.

Defines the storage interfaces the scheduling engine depends on.
"""

from bakeplan.protocols.repositories import (
    IngredientLine,
    InventoryRepository,
    OrderLine,
    OrderRepository,
    ProductionItemSpec,
    RecipeRepository,
    ScheduleRepository,
    ScheduleSpec,
    StockLevel,
)

__all__ = [
    # Repositories
    "ScheduleRepository",
    "RecipeRepository",
    "InventoryRepository",
    "OrderRepository",
    # Input types
    "ScheduleSpec",
    "ProductionItemSpec",
    # Result types
    "IngredientLine",
    "StockLevel",
    "OrderLine",
]
