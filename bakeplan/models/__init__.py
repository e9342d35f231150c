"""
Bakeplan Models.

Core models for production scheduling:
- ProductionSchedule: a day's planned batch of production items
- ProductionItem: one recipe x quantity unit of work with a status lifecycle
- Recipe / RecipeIngredient: what to make and what it consumes per unit
- InventoryItem: ingredient stock, depleted on completion
- ConsumptionTracking: periodic consumption analytics per inventory item
- Product, InternalOrder, CustomerOrder: where production demand comes from
"""

from bakeplan.models.inventory import CalculationMethod, ConsumptionTracking, InventoryItem
from bakeplan.models.order import (
    CustomerOrder,
    CustomerOrderItem,
    CustomerOrderStatus,
    InternalOrder,
    InternalOrderItem,
    InternalOrderStatus,
    OrderKind,
    OrderLink,
    Product,
)
from bakeplan.models.recipe import Recipe, RecipeIngredient
from bakeplan.models.schedule import (
    ALLOWED_TRANSITIONS,
    ProductionItem,
    ProductionSchedule,
    ProductionStatus,
    can_transition,
)

__all__ = [
    "ProductionSchedule",
    "ProductionItem",
    "ProductionStatus",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "Recipe",
    "RecipeIngredient",
    "InventoryItem",
    "ConsumptionTracking",
    "CalculationMethod",
    "Product",
    "InternalOrder",
    "InternalOrderItem",
    "InternalOrderStatus",
    "CustomerOrder",
    "CustomerOrderItem",
    "CustomerOrderStatus",
    "OrderKind",
    "OrderLink",
]
