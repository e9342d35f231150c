"""
Execution service -- start, complete, cancel and patch production items.

Every status change goes through update_production_item, which runs the
whole completion sequence in one transaction:

    persist_item -> recount_schedule -> deduct_inventory -> order_cascade

A failure in any step rolls back every earlier step and surfaces as
TransactionFailed; an item is never left completed with stock untouched.
"""

import logging

from django.db import transaction
from django.utils import timezone

from bakeplan.conf import (
    CASCADE_IGNORE_CANCELLED,
    get_cascade_policy,
    get_inventory_repository,
    get_order_repository,
    get_recipe_repository,
    get_schedule_repository,
)
from bakeplan.exceptions import BadRequest, NotFound, ProductionError, TransactionFailed
from bakeplan.models import ProductionItem, ProductionStatus, can_transition
from bakeplan.results import ItemUpdateResult
from bakeplan.services.cascade import cascade_order_completion
from bakeplan.services.inventory import deduct_for_item

logger = logging.getLogger(__name__)


PATCHABLE_FIELDS = (
    "status",
    "start_time",
    "completed_time",
    "assigned_to",
    "notes",
    "batch_number",
    "quality_check",
    "quality_notes",
)

# Statuses whose timestamp field may be set explicitly
START_TIME_STATUSES = {ProductionStatus.IN_PROGRESS, ProductionStatus.COMPLETED}
COMPLETED_TIME_STATUSES = {ProductionStatus.COMPLETED}


class ProductionExecution:
    """
    Production item execution operations.

    start/complete/cancel are shortcuts over update_production_item.
    """

    @classmethod
    def start_production(cls, item_id: int) -> ItemUpdateResult:
        """Move an item to in_progress, stamping start_time."""
        return cls.update_production_item(item_id, status=ProductionStatus.IN_PROGRESS)

    @classmethod
    def complete_production(
        cls,
        item_id: int,
        quality_check: bool,
        quality_notes: str | None = None,
    ) -> ItemUpdateResult:
        """
        Complete an item: stamps completed_time, deducts stock, cascades.

        Completing an already completed item changes nothing in inventory.
        """
        patch = {
            "status": ProductionStatus.COMPLETED,
            "quality_check": bool(quality_check),
        }
        if quality_notes is not None:
            patch["quality_notes"] = quality_notes
        return cls.update_production_item(item_id, **patch)

    @classmethod
    def cancel_production(cls, item_id: int, reason: str = "") -> ItemUpdateResult:
        """Cancel an item. The reason, if any, is appended to its notes."""
        patch = {"status": ProductionStatus.CANCELLED}
        if reason:
            item = get_schedule_repository().get_item(item_id)
            if item is None:
                raise NotFound("ITEM_NOT_FOUND", item_id=item_id)
            patch["notes"] = f"{item.notes}\n{reason}".strip() if item.notes else reason
        return cls.update_production_item(item_id, **patch)

    @classmethod
    def update_production_item(
        cls,
        item_id: int,
        schedule_id: int | None = None,
        **patch,
    ) -> ItemUpdateResult:
        """
        Patch a production item and run the completion sequence.

        Args:
            item_id: ProductionItem id
            schedule_id: If given, the item must belong to this schedule
            **patch: Any of status, start_time, completed_time, assigned_to,
                notes, batch_number, quality_check, quality_notes

        Returns:
            ItemUpdateResult(item, deductions, cascaded_status)

        Raises:
            NotFound: ITEM_NOT_FOUND
            BadRequest: INVALID_TRANSITION, INVALID_TIMESTAMP
            TransactionFailed: COMPLETION_FAILED, everything rolled back
        """
        unknown = set(patch) - set(PATCHABLE_FIELDS)
        if unknown:
            raise BadRequest("INVALID_FIELD", fields=sorted(unknown))

        schedules = get_schedule_repository()
        completed_steps: list[str] = []
        step = "load_item"

        try:
            with transaction.atomic():
                item = schedules.get_item(item_id, for_update=True)
                if item is None or (schedule_id is not None and item.schedule_id != int(schedule_id)):
                    raise NotFound("ITEM_NOT_FOUND", item_id=item_id, schedule_id=schedule_id)

                previous = item.status
                patch = cls._validate_patch(item, patch)

                link = item.order_link
                if link is not None:
                    # Held until commit so completions of sibling items serialise
                    get_order_repository().lock_order(link.order_id, link.kind)
                completed_steps.append(step)

                step = "persist_item"
                item = schedules.update_item(item_id, patch)
                completed_steps.append(step)

                step = "recount_schedule"
                siblings = schedules.get_items(item.schedule_id)
                schedules.set_totals(
                    item.schedule_id,
                    completed_items=sum(1 for s in siblings if s.status == ProductionStatus.COMPLETED),
                )
                completed_steps.append(step)

                deductions = []
                cascaded_status = None
                newly_completed = (
                    item.status == ProductionStatus.COMPLETED
                    and previous != ProductionStatus.COMPLETED
                )
                newly_cancelled = (
                    item.status == ProductionStatus.CANCELLED
                    and previous != ProductionStatus.CANCELLED
                )

                if newly_completed:
                    step = "deduct_inventory"
                    deductions = deduct_for_item(item, get_recipe_repository(), get_inventory_repository())
                    completed_steps.append(step)

                if link is not None and (newly_completed or newly_cancelled):
                    step = "order_cascade"
                    policy = get_cascade_policy()
                    # A cancellation can only unblock an order when cancelled items are ignored
                    if newly_completed or policy == CASCADE_IGNORE_CANCELLED:
                        cascaded_status = cascade_order_completion(link, get_order_repository(), policy)
                    completed_steps.append(step)

                cls._notify(item, previous, deductions)

        except ProductionError:
            raise
        except Exception as e:
            logger.error(
                f"Item {item_id} update rolled back at {step}: {e}",
                extra={
                    "item_id": item_id,
                    "failed_step": step,
                    "completed_steps": completed_steps,
                },
                exc_info=True,
            )
            raise TransactionFailed(
                "COMPLETION_FAILED",
                item_id=item_id,
                failed_step=step,
                completed_steps=completed_steps,
                error=str(e),
            ) from e

        if item.status != previous:
            logger.info(
                f"Item {item_id} {previous} -> {item.status}",
                extra={
                    "item_id": item_id,
                    "schedule_id": item.schedule_id,
                    "from": previous,
                    "to": item.status,
                    "deductions": len(deductions),
                    "cascaded_status": cascaded_status,
                },
            )

        return ItemUpdateResult(item=item, deductions=deductions, cascaded_status=cascaded_status)

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _validate_patch(cls, item: ProductionItem, patch: dict) -> dict:
        """Check the transition and fill in the timestamps it implies."""
        patch = dict(patch)
        target = patch.get("status", item.status)

        if target not in ProductionStatus.values:
            raise BadRequest("INVALID_STATUS", status=target)
        if not can_transition(item.status, target):
            raise BadRequest("INVALID_TRANSITION", item_id=item.pk, current=item.status, target=target)

        if patch.get("start_time") is not None and target not in START_TIME_STATUSES:
            raise BadRequest("INVALID_TIMESTAMP", field="start_time", status=target)
        if patch.get("completed_time") is not None and target not in COMPLETED_TIME_STATUSES:
            raise BadRequest("INVALID_TIMESTAMP", field="completed_time", status=target)

        if target != item.status:
            now = timezone.now()
            if target == ProductionStatus.IN_PROGRESS and not patch.get("start_time"):
                patch["start_time"] = item.start_time or now
            if target == ProductionStatus.COMPLETED and not patch.get("completed_time"):
                patch["completed_time"] = now

        if "status" in patch:
            patch["status"] = str(target)

        return patch

    @classmethod
    def _notify(cls, item: ProductionItem, previous: str, deductions: list) -> None:
        """Queue lifecycle signals for after the transaction commits."""
        from bakeplan.signals import production_completed, production_started

        if item.status == previous:
            return

        if item.status == ProductionStatus.IN_PROGRESS:
            transaction.on_commit(lambda: production_started.send(sender=cls, item=item))
        elif item.status == ProductionStatus.COMPLETED:
            transaction.on_commit(
                lambda: production_completed.send(sender=cls, item=item, deductions=deductions)
            )
