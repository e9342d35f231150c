"""
Bakeplan Service - single entry point for production scheduling.

Composes the scheduling and execution mixins. Business rules live in
bakeplan.services; storage lives behind the configured repositories.

Usage:
    from bakeplan import production, BadRequest

    result = production.create_schedule(date(2025, 1, 24), items)
    production.start_production(item_id)
    production.complete_production(item_id, quality_check=True)
"""

from bakeplan.services.execution import ProductionExecution
from bakeplan.services.scheduling import ProductionScheduling


class Bakeplan(ProductionScheduling, ProductionExecution):
    """
    Main API for Bakeplan.

    All methods are classmethods; use the class itself (exported as
    ``bakeplan.production``) without instantiating it.
    """
