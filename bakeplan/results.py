"""
Bakeplan Result Types.

Structured results for scheduling and execution operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bakeplan.models import ProductionItem, ProductionSchedule


def _fmt(value: Decimal) -> str:
    """Render a decimal without trailing zeros ("5000", "1.5")."""
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    return str(value)


@dataclass(frozen=True)
class InventoryShortage:
    """Projected shortfall of one ingredient (soft warning)."""

    inventory_item_id: int
    name: str
    required: Decimal
    available: Decimal
    unit: str

    @property
    def shortage(self) -> Decimal:
        return self.required - self.available

    @property
    def message(self) -> str:
        return (
            f"Insufficient {self.name}: need {_fmt(self.required)} {self.unit}, "
            f"have {_fmt(self.available)} {self.unit}"
        )

    def __str__(self) -> str:
        return self.message


@dataclass
class ScheduleResult:
    """
    Result of creating (or replacing the items of) a production schedule.

    The schedule is always persisted; warnings are advisory shortfalls that
    staff may resolve by restocking before the production date.
    """

    schedule: ProductionSchedule
    warnings: list[InventoryShortage] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


@dataclass(frozen=True)
class Deduction:
    """Stock removed from one inventory item by a completed production item."""

    inventory_item_id: int
    quantity: Decimal
    unit: str


@dataclass
class ItemUpdateResult:
    """
    Result of a production item update.

    deductions is empty unless this update completed the item;
    cascaded_status is the order status set by the cascade, if any.
    """

    item: ProductionItem
    deductions: list[Deduction] = field(default_factory=list)
    cascaded_status: str | None = None

    @property
    def deducted(self) -> bool:
        return len(self.deductions) > 0


@dataclass
class RecalculationSummary:
    """Outcome of a consumption recalculation run."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0


@dataclass
class CleanupSummary:
    """Outcome of a consumption tracking cleanup run."""

    orphans_removed: int = 0
    stale: list[int] = field(default_factory=list)
