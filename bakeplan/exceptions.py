"""
Bakeplan Exceptions.

All bakeplan errors derive from ProductionError for consistent handling.
The subclass tells the caller how to react; the code tells it what happened.
"""

from typing import Any


class ProductionError(Exception):
    """
    Base exception for all Bakeplan errors.

    Usage:
        raise BadRequest('INVALID_QUANTITY', quantity=0)

    Attributes:
        code: Error code (ITEM_NOT_FOUND, INVALID_TRANSITION, etc.)
        details: Additional context as keyword arguments
    """

    def __init__(self, code: str, **details: Any):
        self.code = code
        self.details = details
        message = f"{code}: {details}" if details else code
        super().__init__(message)

    def as_dict(self) -> dict:
        """Return error as dictionary for API responses."""
        return {"code": self.code, **self.details}

    def __str__(self) -> str:
        name = type(self).__name__
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{name}({self.code}: {details_str})"
        return f"{name}({self.code})"


class NotFound(ProductionError):
    """A schedule, item, order, recipe or inventory item does not exist."""


class BadRequest(ProductionError):
    """The request is well-formed but violates a business rule."""


class TransactionFailed(ProductionError):
    """
    A multi-step unit of work failed and was rolled back.

    details carry ``failed_step`` and ``completed_steps`` so the caller can
    report how far the sequence got before the rollback.
    """


# Error codes
# NotFound:
#   SCHEDULE_NOT_FOUND, ITEM_NOT_FOUND, ORDER_NOT_FOUND, RECIPE_NOT_FOUND,
#   INVENTORY_ITEM_NOT_FOUND, TRACKING_NOT_FOUND
# BadRequest:
#   EMPTY_SCHEDULE: Schedule without production items
#   INVALID_QUANTITY: Quantity is not a positive integer
#   ORDER_HAS_NO_ITEMS: Order to schedule has no order items
#   PRODUCT_WITHOUT_RECIPE: Ordered product has no recipe associated
#   INVALID_STATUS: Unknown production status
#   INVALID_FIELD: Item field that cannot be patched
#   INVALID_TRANSITION: Status transition not allowed
#   INVALID_TIMESTAMP: start/completed time patched outside its status
#   INVALID_ORDER_LINK: Unknown order kind or both order links supplied
#   INVALID_DATE: Malformed date query parameter (API)
# TransactionFailed:
#   COMPLETION_FAILED: Item update sequence rolled back
