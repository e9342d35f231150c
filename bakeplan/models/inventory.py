"""
InventoryItem and ConsumptionTracking models.

InventoryItem = stock of one ingredient; depleted by completed production.
ConsumptionTracking = periodic consumption analytics for one inventory item.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class InventoryItem(models.Model):
    """
    Stock of an ingredient.

    current_stock is never driven below zero by production.
    """

    name = models.CharField(
        max_length=200,
        verbose_name=_("Name"),
    )
    unit = models.CharField(
        max_length=20,
        default="kg",
        verbose_name=_("Unit"),
    )
    current_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0"),
        verbose_name=_("Current stock"),
    )
    minimum_stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0"),
        verbose_name=_("Minimum stock"),
        help_text=_("Low-stock threshold used when there is no consumption data"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    class Meta:
        db_table = "bakeplan_inventory_item"
        verbose_name = _("Inventory item")
        verbose_name_plural = _("Inventory items")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(current_stock__gte=0),
                name="bakeplan_inventory_stock_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return self.name


class CalculationMethod(models.TextChoices):
    HISTORICAL_PRODUCTION = "historical_production", _("Historical production")
    MANUAL = "manual", _("Manual")


class ConsumptionTracking(models.Model):
    """
    Consumption analytics for one inventory item.

    inventory_item_id is a plain column (not a foreign key): deleting an
    inventory item leaves the row behind until the weekly cleanup prunes it.
    """

    inventory_item_id = models.PositiveBigIntegerField(
        unique=True,
        verbose_name=_("Inventory item ID"),
    )

    avg_daily_consumption = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0"),
        verbose_name=_("Average daily consumption"),
    )
    calculation_period_days = models.PositiveSmallIntegerField(
        default=7,
        verbose_name=_("Calculation period (days)"),
    )
    last_calculated_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        verbose_name=_("Last calculated at"),
    )
    calculation_method = models.CharField(
        max_length=30,
        choices=CalculationMethod.choices,
        default=CalculationMethod.HISTORICAL_PRODUCTION,
        verbose_name=_("Calculation method"),
    )

    # User overrides
    custom_reorder_threshold = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_("Custom reorder threshold"),
    )
    custom_lead_time_days = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        verbose_name=_("Custom lead time (days)"),
    )

    sample_size = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Sample size"),
        help_text=_("Completed production items behind the average"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    class Meta:
        db_table = "bakeplan_consumption_tracking"
        verbose_name = _("Consumption tracking")
        verbose_name_plural = _("Consumption tracking")
        ordering = ["inventory_item_id"]

    def __str__(self) -> str:
        return f"Item {self.inventory_item_id}: {self.avg_daily_consumption}/day"

    @property
    def inventory_item(self) -> InventoryItem | None:
        return InventoryItem.objects.filter(pk=self.inventory_item_id).first()
