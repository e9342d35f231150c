"""
Bakeplan Services.

Business logic that doesn't belong in models:
- scheduling: create, update, delete and query schedules
- execution: start, complete, cancel and patch items (completion sequence)
- inventory: shortfall projection and stock deduction
- cascade: order completion once all of its items are done
- consumption: periodic consumption analytics
"""

from bakeplan.services.cascade import cascade_order_completion
from bakeplan.services.consumption import ConsumptionRecalculationJob
from bakeplan.services.execution import ProductionExecution
from bakeplan.services.inventory import deduct_for_item, project_requirements
from bakeplan.services.scheduling import ProductionScheduling

__all__ = [
    "ProductionScheduling",
    "ProductionExecution",
    "ConsumptionRecalculationJob",
    "project_requirements",
    "deduct_for_item",
    "cascade_order_completion",
]
