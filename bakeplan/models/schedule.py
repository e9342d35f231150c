"""
ProductionSchedule and ProductionItem models.

ProductionSchedule = a day's planned batch of production items.
ProductionItem = one recipe x quantity unit of work with its own lifecycle.
"""

import uuid

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from bakeplan.models.order import OrderKind, OrderLink


class ProductionStatus(models.TextChoices):
    """ProductionItem lifecycle status."""

    SCHEDULED = "scheduled", _("Scheduled")
    IN_PROGRESS = "in_progress", _("In progress")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")


# Forward-only transitions. Same-state updates are always allowed so a
# redundant "complete" is a harmless no-op.
ALLOWED_TRANSITIONS = {
    ProductionStatus.SCHEDULED: {
        ProductionStatus.IN_PROGRESS,
        ProductionStatus.COMPLETED,
        ProductionStatus.CANCELLED,
    },
    ProductionStatus.IN_PROGRESS: {
        ProductionStatus.COMPLETED,
        ProductionStatus.CANCELLED,
    },
    ProductionStatus.COMPLETED: set(),
    ProductionStatus.CANCELLED: set(),
}


def can_transition(current: str, target: str) -> bool:
    """Check if an item may move from ``current`` to ``target``."""
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS.get(current, set())


class ProductionSchedule(models.Model):
    """
    Production schedule for one day.

    total_items and completed_items are maintained by the engine:
    total_items = number of linked items,
    completed_items = number of linked items with status 'completed'.
    """

    # UUID for external references
    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        verbose_name=_("UUID"),
    )

    date = models.DateField(
        db_index=True,
        verbose_name=_("Production date"),
    )

    total_items = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Total items"),
    )
    completed_items = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Completed items"),
    )

    notes = models.TextField(
        blank=True,
        verbose_name=_("Notes"),
    )

    created_by = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_("Created by"),
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    # History
    history = HistoricalRecords()

    class Meta:
        db_table = "bakeplan_production_schedule"
        verbose_name = _("Production schedule")
        verbose_name_plural = _("Production schedules")
        ordering = ["-date", "-created_at"]

    def __str__(self) -> str:
        return f"Schedule {self.date.strftime('%a %d/%m/%y')}"

    @property
    def is_complete(self) -> bool:
        return self.total_items > 0 and self.completed_items == self.total_items

    @property
    def progress(self) -> dict:
        """
        Completion progress.

        Returns:
            {'completed': 2, 'total': 3, 'percentage': 66}
        """
        total = self.total_items
        return {
            "completed": self.completed_items,
            "total": total,
            "percentage": int(self.completed_items / total * 100) if total else 0,
        }


class ProductionItem(models.Model):
    """
    Planned unit of production work.

    Status: SCHEDULED → IN_PROGRESS → COMPLETED, or CANCELLED (manual only).

    Serves at most one order: internal_order and customer_order are never
    both set (enforced by a check constraint). Use ``order_link``.
    """

    # UUID for external references
    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        verbose_name=_("UUID"),
    )

    schedule = models.ForeignKey(
        ProductionSchedule,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name=_("Schedule"),
    )

    recipe = models.ForeignKey(
        "bakeplan.Recipe",
        on_delete=models.PROTECT,
        related_name="production_items",
        verbose_name=_("Recipe"),
    )
    recipe_name = models.CharField(
        max_length=255,
        verbose_name=_("Recipe name"),
        help_text=_("Snapshot of the recipe name at scheduling time"),
    )

    quantity = models.PositiveIntegerField(
        verbose_name=_("Quantity"),
        help_text=_("Recipe yield units to produce"),
    )

    status = models.CharField(
        max_length=20,
        choices=ProductionStatus.choices,
        default=ProductionStatus.SCHEDULED,
        db_index=True,
        verbose_name=_("Status"),
    )

    # Timing
    scheduled_time = models.DateTimeField(
        db_index=True,
        verbose_name=_("Scheduled time"),
    )
    start_time = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("Start time"),
    )
    completed_time = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("Completed time"),
    )

    assigned_to = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_("Assigned to"),
    )
    notes = models.TextField(
        blank=True,
        verbose_name=_("Notes"),
    )
    batch_number = models.CharField(
        max_length=100,
        blank=True,
        verbose_name=_("Batch number"),
    )

    # Quality
    quality_check = models.BooleanField(
        default=False,
        verbose_name=_("Quality check passed"),
    )
    quality_notes = models.TextField(
        blank=True,
        verbose_name=_("Quality notes"),
    )

    # Order link (at most one)
    internal_order = models.ForeignKey(
        "bakeplan.InternalOrder",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="production_items",
        verbose_name=_("Internal order"),
    )
    customer_order = models.ForeignKey(
        "bakeplan.CustomerOrder",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="production_items",
        verbose_name=_("Customer order"),
    )

    # History
    history = HistoricalRecords()

    class Meta:
        db_table = "bakeplan_production_item"
        verbose_name = _("Production item")
        verbose_name_plural = _("Production items")
        ordering = ["scheduled_time", "id"]
        indexes = [
            models.Index(fields=["schedule", "status"], name="bakeplan_item_sched_status_idx"),
            models.Index(fields=["recipe", "status"], name="bakeplan_item_recipe_stat_idx"),
            models.Index(fields=["status", "completed_time"], name="bakeplan_item_stat_done_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(internal_order__isnull=True) | Q(customer_order__isnull=True),
                name="bakeplan_item_single_order_link",
            ),
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="bakeplan_item_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.recipe_name} x{self.quantity} ({self.status})"

    @property
    def order_link(self) -> OrderLink | None:
        """The order this item serves, if any."""
        if self.internal_order_id is not None:
            return OrderLink(OrderKind.INTERNAL, self.internal_order_id)
        if self.customer_order_id is not None:
            return OrderLink(OrderKind.CUSTOMER, self.customer_order_id)
        return None

    @order_link.setter
    def order_link(self, link: OrderLink | None):
        self.internal_order_id = None
        self.customer_order_id = None
        if link is None:
            return
        if link.kind == OrderKind.INTERNAL:
            self.internal_order_id = link.order_id
        else:
            self.customer_order_id = link.order_id

    @property
    def order_id(self) -> int | None:
        """Unified view over both order linkage fields."""
        link = self.order_link
        return link.order_id if link else None

    @property
    def order_kind(self) -> str | None:
        link = self.order_link
        return link.kind.value if link else None

    @property
    def is_completed(self) -> bool:
        return self.status == ProductionStatus.COMPLETED

    @property
    def production_date(self):
        return self.schedule.date
