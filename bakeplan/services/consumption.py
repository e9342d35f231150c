"""
Consumption recalculation job.

Turns completed production history into an average daily consumption per
inventory item, stored in ConsumptionTracking. Runs from cron through the
``recalculate_consumption`` (daily) and ``cleanup_consumption`` (weekly)
management commands.

The job only reads production history and writes tracking rows; stock
levels are never touched here.

Usage:
    from bakeplan.services.consumption import ConsumptionRecalculationJob

    tracking = ConsumptionRecalculationJob.recalculate(flour.pk)
    ConsumptionRecalculationJob.days_of_supply(flour.current_stock, tracking.avg_daily_consumption)
"""

import logging
import math
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.utils import timezone

from bakeplan.conf import get_setting
from bakeplan.exceptions import NotFound
from bakeplan.models import (
    CalculationMethod,
    ConsumptionTracking,
    InventoryItem,
    ProductionItem,
    ProductionStatus,
    RecipeIngredient,
)
from bakeplan.results import CleanupSummary, RecalculationSummary

logger = logging.getLogger(__name__)

NO_CONSUMPTION_DAYS = Decimal("999")


class ConsumptionRecalculationJob:
    """Periodic consumption analytics over completed production."""

    # ══════════════════════════════════════════════════════════════
    # RECALCULATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def recalculate(cls, inventory_item_id: int, now: datetime | None = None) -> ConsumptionTracking:
        """
        Recompute the average daily consumption of one inventory item.

        Consumption = sum of item.quantity x ingredient quantity over the
        production items completed in the last CONSUMPTION_PERIOD_DAYS whose
        recipe uses the inventory item. Custom thresholds are preserved.
        """
        if not InventoryItem.objects.filter(pk=inventory_item_id).exists():
            raise NotFound("INVENTORY_ITEM_NOT_FOUND", inventory_item_id=inventory_item_id)

        now = now or timezone.now()
        period = int(get_setting("CONSUMPTION_PERIOD_DAYS"))
        since = now - timedelta(days=period)

        per_unit = dict(
            RecipeIngredient.objects.filter(inventory_item_id=inventory_item_id).values_list(
                "recipe_id", "quantity"
            )
        )

        total = Decimal("0")
        sample_size = 0
        if per_unit:
            completed = ProductionItem.objects.filter(
                status=ProductionStatus.COMPLETED,
                completed_time__gt=since,
                completed_time__lte=now,
                recipe_id__in=list(per_unit),
            ).values_list("recipe_id", "quantity")

            for recipe_id, quantity in completed:
                total += per_unit[recipe_id] * quantity
                sample_size += 1

        avg = (total / period).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP) if period else Decimal("0")

        with transaction.atomic():
            tracking, created = ConsumptionTracking.objects.update_or_create(
                inventory_item_id=inventory_item_id,
                defaults={
                    "avg_daily_consumption": avg,
                    "calculation_period_days": period,
                    "last_calculated_at": now,
                    "calculation_method": CalculationMethod.HISTORICAL_PRODUCTION,
                    "sample_size": sample_size,
                },
            )

        logger.info(
            f"Recalculated consumption for inventory item {inventory_item_id}: {avg}/day",
            extra={
                "inventory_item_id": inventory_item_id,
                "avg_daily_consumption": float(avg),
                "sample_size": sample_size,
                "tracking_created": created,
            },
        )

        return tracking

    @classmethod
    def recalculate_all(cls, now: datetime | None = None) -> RecalculationSummary:
        """Recalculate every inventory item; one failure does not stop the run."""
        now = now or timezone.now()
        summary = RecalculationSummary()

        for inventory_item_id in InventoryItem.objects.order_by("pk").values_list("pk", flat=True):
            summary.processed += 1
            try:
                cls.recalculate(inventory_item_id, now=now)
                summary.succeeded += 1
            except Exception as e:
                summary.failed += 1
                logger.error(
                    f"Consumption recalculation failed for inventory item {inventory_item_id}: {e}",
                    extra={"inventory_item_id": inventory_item_id},
                    exc_info=True,
                )

        logger.info(
            f"Consumption recalculation done: {summary.succeeded}/{summary.processed} succeeded",
            extra={
                "processed": summary.processed,
                "succeeded": summary.succeeded,
                "failed": summary.failed,
            },
        )

        return summary

    @classmethod
    def cleanup(cls, now: datetime | None = None) -> CleanupSummary:
        """
        Remove orphaned tracking rows and report stale ones.

        A row is orphaned when its inventory item no longer exists (every row
        is orphaned when there are no inventory items at all). A row is stale
        when it was last calculated more than STALE_TRACKING_DAYS ago.
        """
        now = now or timezone.now()

        existing = InventoryItem.objects.values_list("pk", flat=True)
        orphans = ConsumptionTracking.objects.exclude(inventory_item_id__in=existing)
        orphans_removed, _ = orphans.delete()

        if orphans_removed:
            logger.warning(
                f"Removed {orphans_removed} orphaned consumption tracking records",
                extra={"orphans_removed": orphans_removed},
            )

        stale_days = int(get_setting("STALE_TRACKING_DAYS"))
        stale = list(
            ConsumptionTracking.objects.filter(
                last_calculated_at__lt=now - timedelta(days=stale_days)
            ).values_list("inventory_item_id", flat=True)
        )

        if stale:
            logger.warning(
                f"Found {len(stale)} inventory items with stale consumption data (>{stale_days} days old)",
                extra={"stale": stale},
            )

        return CleanupSummary(orphans_removed=orphans_removed, stale=stale)

    # ══════════════════════════════════════════════════════════════
    # THRESHOLDS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def set_custom_threshold(
        cls,
        inventory_item_id: int,
        threshold: Decimal,
        lead_time_days: int | None = None,
    ) -> ConsumptionTracking:
        """Override the predictive low-stock rule with a fixed threshold."""
        if not InventoryItem.objects.filter(pk=inventory_item_id).exists():
            raise NotFound("INVENTORY_ITEM_NOT_FOUND", inventory_item_id=inventory_item_id)

        defaults = {"custom_reorder_threshold": Decimal(str(threshold))}
        if lead_time_days is not None:
            defaults["custom_lead_time_days"] = lead_time_days

        tracking, _ = ConsumptionTracking.objects.update_or_create(
            inventory_item_id=inventory_item_id,
            defaults=defaults,
            create_defaults={**defaults, "calculation_method": CalculationMethod.MANUAL},
        )
        return tracking

    @classmethod
    def clear_custom_threshold(cls, inventory_item_id: int) -> ConsumptionTracking:
        tracking = ConsumptionTracking.objects.filter(inventory_item_id=inventory_item_id).first()
        if tracking is None:
            raise NotFound("TRACKING_NOT_FOUND", inventory_item_id=inventory_item_id)

        tracking.custom_reorder_threshold = None
        tracking.custom_lead_time_days = None
        tracking.save(update_fields=["custom_reorder_threshold", "custom_lead_time_days", "updated_at"])
        return tracking

    # ══════════════════════════════════════════════════════════════
    # DERIVED ANALYTICS
    # ══════════════════════════════════════════════════════════════

    @staticmethod
    def days_of_supply(current_stock: Decimal, avg_daily_consumption: Decimal) -> Decimal:
        """Days until stock runs out, to one decimal; 999 without consumption."""
        if not avg_daily_consumption:
            return NO_CONSUMPTION_DAYS
        days = Decimal(current_stock) / Decimal(avg_daily_consumption)
        return days.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

    @staticmethod
    def predicted_stockout_date(
        current_stock: Decimal,
        avg_daily_consumption: Decimal,
        today: date | None = None,
    ) -> date | None:
        if not avg_daily_consumption:
            return None
        today = today or timezone.localdate()
        days = Decimal(current_stock) / Decimal(avg_daily_consumption)
        return today + timedelta(days=math.ceil(days))

    @staticmethod
    def is_low_stock(item: InventoryItem, tracking: ConsumptionTracking | None = None) -> bool:
        """
        Whether ``item`` needs reordering.

        In order: a custom reorder threshold wins; otherwise, with
        consumption data, stock must cover lead time plus safety buffer;
        without it, stock is compared with minimum_stock.
        """
        if tracking is not None and tracking.custom_reorder_threshold is not None:
            return item.current_stock < tracking.custom_reorder_threshold

        if tracking is None or not tracking.avg_daily_consumption:
            return item.current_stock < item.minimum_stock

        lead_time = tracking.custom_lead_time_days or int(get_setting("DEFAULT_LEAD_TIME_DAYS"))
        buffer = int(get_setting("SAFETY_BUFFER_DAYS"))
        days_remaining = item.current_stock / tracking.avg_daily_consumption
        return days_remaining < lead_time + buffer
