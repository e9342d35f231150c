"""
Bakeplan - Production Scheduling & Inventory Consumption Engine.

Turns recipe-based production plans into tracked work items, advances each
item through its lifecycle, depletes inventory on completion and propagates
completion back to the originating order.

Usage:
    from bakeplan import production, ProductionError

    # Planning
    result = production.create_schedule(
        date(2025, 1, 24),
        items=[{"recipe_id": croissant.pk, "quantity": 40}],
        created_by="maria",
    )
    for warning in result.warnings:
        print(warning.message)  # Insufficient Flour: need 12 kg, have 8 kg

    # Or straight from an order
    production.create_schedule_from_order(order.pk, date(2025, 1, 24), "customer")

    # Execution
    item = result.schedule.items.first()
    production.start_production(item.pk)
    production.complete_production(item.pk, quality_check=True)  # Deducts stock!
"""

from bakeplan.exceptions import (
    BadRequest,
    NotFound,
    ProductionError,
    TransactionFailed,
)


def __getattr__(name):
    """Lazy import to avoid AppRegistryNotReady errors."""
    if name in ("production", "Bakeplan"):
        from bakeplan.service import Bakeplan

        return Bakeplan
    if name == "ScheduleResult":
        from bakeplan.results import ScheduleResult

        return ScheduleResult
    if name == "InventoryShortage":
        from bakeplan.results import InventoryShortage

        return InventoryShortage
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "production",
    "Bakeplan",
    "ProductionError",
    "NotFound",
    "BadRequest",
    "TransactionFailed",
    "ScheduleResult",
    "InventoryShortage",
]
__version__ = "0.1.0"
