"""
Bakeplan Adapters.

Implementations of the repository protocols. The Django ORM adapters are the
defaults; point the BAKEPLAN *_REPOSITORY settings elsewhere to swap them.
"""

from bakeplan.adapters.orm import (
    OrmInventoryRepository,
    OrmOrderRepository,
    OrmRecipeRepository,
    OrmScheduleRepository,
)

__all__ = [
    "OrmScheduleRepository",
    "OrmRecipeRepository",
    "OrmInventoryRepository",
    "OrmOrderRepository",
]
