"""
Bakeplan Signals.

Integration points for the rest of the back office. Every signal is sent
only after the surrounding transaction commits, so receivers never see
rolled-back state.

Signals:
    schedule_created: Schedule persisted with its items
    production_started: Item entered in_progress
    production_completed: Item completed, inventory deducted
    order_cascaded: Every item of an order completed, order status advanced
"""

from django.dispatch import Signal

# Schedule persisted
# Args: schedule, warnings (list of InventoryShortage)
schedule_created = Signal()

# Item moved to in_progress
# Args: item
production_started = Signal()

# Item completed and its ingredients deducted
# Args: item, deductions (list of Deduction)
production_completed = Signal()

# Order advanced by the completion cascade
# Args: link (OrderLink), status
order_cascaded = Signal()

__all__ = [
    "schedule_created",
    "production_started",
    "production_completed",
    "order_cascaded",
]
