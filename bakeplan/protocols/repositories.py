"""
Repository Protocols.

Defines the storage contracts the scheduling engine depends on. The engine
never touches persistence directly; every read and write goes through one of
these four repositories.

Default implementations (Django ORM) live in bakeplan.adapters.orm and can
be swapped via settings:

    BAKEPLAN = {
        "INVENTORY_REPOSITORY": "myproject.stock.StockLedgerRepository",
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from bakeplan.models import OrderKind, OrderLink, ProductionItem, ProductionSchedule, Recipe


# ══════════════════════════════════════════════════════════════
# DATA TYPES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class IngredientLine:
    """One recipe ingredient: quantity of an inventory item per yield unit."""

    inventory_item_id: int
    quantity_per_unit: Decimal
    unit: str


@dataclass(frozen=True)
class StockLevel:
    """Current stock of an inventory item."""

    current_stock: Decimal
    unit: str
    name: str = ""


@dataclass(frozen=True)
class OrderLine:
    """One order item, with the recipe of the sold product (if any)."""

    product_id: int
    quantity: int
    special_instructions: str = ""
    product_name: str = ""
    recipe_id: int | None = None
    recipe_name: str | None = None


@dataclass
class ProductionItemSpec:
    """Production item to be inserted into a schedule."""

    recipe_id: int
    quantity: int
    scheduled_time: datetime
    recipe_name: str = ""
    status: str = "scheduled"
    start_time: datetime | None = None
    completed_time: datetime | None = None
    assigned_to: str = ""
    notes: str = ""
    batch_number: str = ""
    quality_check: bool = False
    quality_notes: str = ""
    order_link: OrderLink | None = None


@dataclass
class ScheduleSpec:
    """Schedule header to be inserted together with its items."""

    date: date
    notes: str = ""
    created_by: str = ""


# ══════════════════════════════════════════════════════════════
# PROTOCOLS
# ══════════════════════════════════════════════════════════════


@runtime_checkable
class ScheduleRepository(Protocol):
    """Durable storage for production schedules and their items."""

    def create_schedule(
        self, schedule: ScheduleSpec, items: list[ProductionItemSpec]
    ) -> ProductionSchedule:
        """Insert a schedule and all of its items; totals reflect the items."""
        ...

    def get_schedule(self, schedule_id: int) -> ProductionSchedule | None:
        ...

    def list_schedules(
        self, start_date: date | None = None, end_date: date | None = None
    ) -> list[ProductionSchedule]:
        """Schedules within an inclusive date range, newest date first."""
        ...

    def update_schedule(self, schedule_id: int, fields: dict[str, Any]) -> ProductionSchedule:
        ...

    def delete_schedule(self, schedule_id: int) -> None:
        """Delete a schedule together with its items."""
        ...

    def get_items(self, schedule_id: int) -> list[ProductionItem]:
        ...

    def get_item(self, item_id: int, for_update: bool = False) -> ProductionItem | None:
        """
        Load one item.

        for_update=True locks the row until the surrounding transaction ends.
        """
        ...

    def update_item(self, item_id: int, patch: dict[str, Any]) -> ProductionItem:
        ...

    def replace_items(self, schedule_id: int, items: list[ProductionItemSpec]) -> list[ProductionItem]:
        """Delete every item of the schedule and insert ``items`` instead."""
        ...

    def set_totals(
        self, schedule_id: int, total_items: int | None = None, completed_items: int | None = None
    ) -> None:
        ...


@runtime_checkable
class RecipeRepository(Protocol):
    """Read-only recipe catalog."""

    def get_recipe(self, recipe_id: int) -> Recipe | None:
        ...

    def get_ingredients(self, recipe_id: int) -> list[IngredientLine]:
        ...

    def get_recipe_for_product(self, product_id: int) -> Recipe | None:
        """Recipe associated with a sold product, if any."""
        ...


@runtime_checkable
class InventoryRepository(Protocol):
    """Inventory ledger, mutated by production completion."""

    def get_stock(self, inventory_item_id: int) -> StockLevel | None:
        ...

    def set_stock(self, inventory_item_id: int, new_stock: Decimal) -> None:
        ...

    def decrement_stock(self, inventory_item_id: int, amount: Decimal) -> bool:
        """
        Atomically remove ``amount`` from stock, flooring at zero.

        Must be a single conditional update at the storage layer, never a
        read/compute/write sequence. Returns False if the item is unknown.
        """
        ...


@runtime_checkable
class OrderRepository(Protocol):
    """Gateway to internal and customer orders."""

    def get_order(self, order_id: int, kind: OrderKind) -> Any | None:
        ...

    def lock_order(self, order_id: int, kind: OrderKind) -> None:
        """
        Hold a row lock on the order until the surrounding transaction ends.

        Serialises concurrent completions of items linked to the same order.
        """
        ...

    def get_order_items(self, order_id: int, kind: OrderKind) -> list[OrderLine]:
        ...

    def get_items_by_order_link(self, order_id: int, kind: OrderKind) -> list[ProductionItem]:
        """Every production item (any schedule) linked to the order."""
        ...

    def set_order_status(
        self,
        order_id: int,
        kind: OrderKind,
        status: str,
        completed_at: datetime | None = None,
    ) -> None:
        ...
