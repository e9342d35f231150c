"""
Scheduling service -- create, update, delete and query production schedules.

All methods are @classmethod so the mixin can be composed into Bakeplan
without instantiation. Persistence goes through the configured repositories
(see bakeplan.conf).
"""

import dataclasses
import logging
from datetime import date, datetime, time
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from bakeplan.conf import (
    get_inventory_repository,
    get_order_repository,
    get_recipe_repository,
    get_schedule_repository,
)
from bakeplan.exceptions import BadRequest, NotFound
from bakeplan.models import (
    CustomerOrderStatus,
    OrderKind,
    OrderLink,
    ProductionSchedule,
    ProductionStatus,
)
from bakeplan.protocols.repositories import ProductionItemSpec, ScheduleSpec
from bakeplan.results import ScheduleResult
from bakeplan.services.inventory import project_requirements

logger = logging.getLogger(__name__)


ITEM_SPEC_FIELDS = (
    "recipe_name",
    "status",
    "start_time",
    "completed_time",
    "assigned_to",
    "notes",
    "batch_number",
    "quality_check",
    "quality_notes",
)


def start_of_day(day: date) -> datetime:
    """Midnight of ``day`` in the current timezone."""
    moment = datetime.combine(day, time(0, 0))
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return moment


def validate_quantity(quantity) -> int:
    """Return ``quantity`` as int, or raise INVALID_QUANTITY."""
    if isinstance(quantity, bool):
        raise BadRequest("INVALID_QUANTITY", quantity=quantity)
    try:
        value = Decimal(str(quantity))
    except (ArithmeticError, ValueError, TypeError):
        raise BadRequest("INVALID_QUANTITY", quantity=str(quantity))
    if not value.is_finite() or value <= 0 or value != value.to_integral_value():
        raise BadRequest("INVALID_QUANTITY", quantity=str(quantity))
    return int(value)


def parse_order_link(order_id, order_kind) -> OrderLink | None:
    """Build an OrderLink from the loose (order_id, order_kind) pair."""
    if order_id is None and not order_kind:
        return None
    if order_id is None or not order_kind:
        raise BadRequest("INVALID_ORDER_LINK", order_id=order_id, order_kind=order_kind)
    try:
        return OrderLink(order_kind, int(order_id))
    except (TypeError, ValueError):
        raise BadRequest("INVALID_ORDER_LINK", order_id=order_id, order_kind=order_kind)


class ProductionScheduling:
    """
    Schedule lifecycle operations.

    Creation always succeeds when the input is valid; inventory shortfalls
    are returned as warnings on the ScheduleResult instead of raised.
    """

    # ══════════════════════════════════════════════════════════════
    # CREATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_schedule(
        cls,
        date: date,
        items: list,
        notes: str = "",
        created_by: str = "",
    ) -> ScheduleResult:
        """
        Create a schedule with its production items.

        Args:
            date: Production date
            items: Dicts (or ProductionItemSpec) with at least recipe_id and
                quantity; optional scheduled_time, order_id + order_kind and
                any patchable item field
            notes: Schedule notes
            created_by: Free-form author reference

        Returns:
            ScheduleResult with the persisted schedule and shortfall warnings

        Example:
            production.create_schedule(date(2025, 1, 24), [{"recipe_id": 1, "quantity": 10}])
        """
        specs = cls._build_item_specs(date, items)
        schedule_spec = ScheduleSpec(date=date, notes=notes or "", created_by=created_by or "")

        with transaction.atomic():
            result = cls._persist_schedule(schedule_spec, specs)

        logger.info(
            f"Created schedule for {date} with {len(specs)} items",
            extra={
                "schedule_id": result.schedule.pk,
                "date": str(date),
                "items": len(specs),
                "warnings": len(result.warnings),
            },
        )

        return result

    @classmethod
    def create_schedule_from_order(
        cls,
        order_id: int,
        scheduled_date: date,
        kind: str,
        created_by: str = "",
    ) -> ScheduleResult:
        """
        Create a schedule producing every item of an order.

        Every ordered product must have a recipe; the check runs before
        anything is written, so a mixed order creates nothing at all.
        Customer orders move to ``confirmed``; internal orders are left
        as they are until the completion cascade.
        """
        try:
            kind = OrderKind(kind)
        except ValueError:
            raise BadRequest("INVALID_ORDER_LINK", order_id=order_id, order_kind=kind)

        orders = get_order_repository()

        order = orders.get_order(order_id, kind)
        if order is None:
            raise NotFound("ORDER_NOT_FOUND", order_id=order_id, order_kind=kind.value)

        lines = orders.get_order_items(order_id, kind)
        if not lines:
            raise BadRequest("ORDER_HAS_NO_ITEMS", order_id=order_id, order_kind=kind.value)

        missing = [line for line in lines if line.recipe_id is None]
        if missing:
            raise BadRequest(
                "PRODUCT_WITHOUT_RECIPE",
                order_id=order_id,
                products=[line.product_name or line.product_id for line in missing],
            )

        link = OrderLink(kind, order_id)
        scheduled_time = start_of_day(scheduled_date)
        specs = [
            ProductionItemSpec(
                recipe_id=line.recipe_id,
                recipe_name=line.recipe_name or "",
                quantity=validate_quantity(line.quantity),
                scheduled_time=scheduled_time,
                notes=line.special_instructions or "",
                order_link=link,
            )
            for line in lines
        ]
        cls._fill_recipe_names(specs)

        schedule_spec = ScheduleSpec(
            date=scheduled_date,
            notes=f"Created from {kind.value} order {order.order_number}",
            created_by=created_by or "",
        )

        with transaction.atomic():
            result = cls._persist_schedule(schedule_spec, specs)
            if kind == OrderKind.CUSTOMER:
                orders.set_order_status(order_id, kind, CustomerOrderStatus.CONFIRMED)

        logger.info(
            f"Created schedule for {scheduled_date} from {kind.value} order {order.order_number}",
            extra={
                "schedule_id": result.schedule.pk,
                "order_id": order_id,
                "order_kind": kind.value,
                "items": len(specs),
            },
        )

        return result

    # ══════════════════════════════════════════════════════════════
    # MUTATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def update_schedule(
        cls,
        schedule_id: int,
        date: date | None = None,
        notes: str | None = None,
        items: list | None = None,
    ) -> ScheduleResult:
        """
        Update schedule fields and optionally replace its items wholesale.

        When ``items`` is a non-empty list, every existing item is deleted and
        the new list inserted; totals are recomputed from the new set. An
        empty list leaves the items alone. Replacing items never deducts
        stock, even for items supplied as completed.
        """
        schedules = get_schedule_repository()

        schedule = schedules.get_schedule(schedule_id)
        if schedule is None:
            raise NotFound("SCHEDULE_NOT_FOUND", schedule_id=schedule_id)

        fields = {}
        if date is not None:
            fields["date"] = date
        if notes is not None:
            fields["notes"] = notes

        specs = None
        warnings = []
        if items:
            specs = cls._build_item_specs(date or schedule.date, items)
            warnings = cls._project(specs)

        with transaction.atomic():
            if fields:
                schedule = schedules.update_schedule(schedule_id, fields)
            if specs is not None:
                schedules.replace_items(schedule_id, specs)
                schedules.set_totals(
                    schedule_id,
                    total_items=len(specs),
                    completed_items=sum(1 for s in specs if s.status == ProductionStatus.COMPLETED),
                )
            schedule = schedules.get_schedule(schedule_id)

        logger.info(
            f"Updated schedule {schedule_id}",
            extra={
                "schedule_id": schedule_id,
                "fields": sorted(fields),
                "items_replaced": specs is not None,
            },
        )

        return ScheduleResult(schedule=schedule, warnings=warnings)

    @classmethod
    def delete_schedule(cls, schedule_id: int) -> None:
        """Delete a schedule and its items."""
        schedules = get_schedule_repository()

        if schedules.get_schedule(schedule_id) is None:
            raise NotFound("SCHEDULE_NOT_FOUND", schedule_id=schedule_id)

        schedules.delete_schedule(schedule_id)

        logger.info(f"Deleted schedule {schedule_id}", extra={"schedule_id": schedule_id})

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get_schedule(cls, schedule_id: int) -> ProductionSchedule:
        schedule = get_schedule_repository().get_schedule(schedule_id)
        if schedule is None:
            raise NotFound("SCHEDULE_NOT_FOUND", schedule_id=schedule_id)
        return schedule

    @classmethod
    def list_schedules(
        cls, start_date: date | None = None, end_date: date | None = None
    ) -> list[ProductionSchedule]:
        """Schedules within an inclusive date range, newest date first."""
        return get_schedule_repository().list_schedules(start_date, end_date)

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _persist_schedule(cls, schedule_spec: ScheduleSpec, specs: list[ProductionItemSpec]) -> ScheduleResult:
        warnings = cls._project(specs)
        schedule = get_schedule_repository().create_schedule(schedule_spec, specs)

        from bakeplan.signals import schedule_created

        transaction.on_commit(
            lambda: schedule_created.send(sender=cls, schedule=schedule, warnings=warnings)
        )

        return ScheduleResult(schedule=schedule, warnings=warnings)

    @classmethod
    def _project(cls, specs: list[ProductionItemSpec]) -> list:
        warnings = project_requirements(specs, get_recipe_repository(), get_inventory_repository())
        for warning in warnings:
            logger.warning(
                warning.message,
                extra={
                    "inventory_item_id": warning.inventory_item_id,
                    "required": float(warning.required),
                    "available": float(warning.available),
                },
            )
        return warnings

    @classmethod
    def _build_item_specs(cls, production_date: date, items: list) -> list[ProductionItemSpec]:
        """Validate raw item input and turn it into ProductionItemSpecs."""
        if not items:
            raise BadRequest("EMPTY_SCHEDULE")

        default_time = start_of_day(production_date)
        specs = []

        for raw in items:
            if isinstance(raw, ProductionItemSpec):
                specs.append(dataclasses.replace(raw, quantity=validate_quantity(raw.quantity)))
                continue

            status = raw.get("status") or ProductionStatus.SCHEDULED
            if status not in ProductionStatus.values:
                raise BadRequest("INVALID_STATUS", status=status)

            spec = ProductionItemSpec(
                recipe_id=raw.get("recipe_id"),
                quantity=validate_quantity(raw.get("quantity")),
                scheduled_time=raw.get("scheduled_time") or default_time,
                order_link=parse_order_link(raw.get("order_id"), raw.get("order_kind")),
            )
            for name in ITEM_SPEC_FIELDS:
                value = raw.get(name)
                if value is not None:
                    setattr(spec, name, value)
            spec.status = str(status)
            specs.append(spec)

        cls._fill_recipe_names(specs)
        return specs

    @classmethod
    def _fill_recipe_names(cls, specs: list[ProductionItemSpec]) -> None:
        """Check every recipe exists; snapshot its name where none was given."""
        recipes = get_recipe_repository()
        seen = {}

        for spec in specs:
            if spec.recipe_id not in seen:
                recipe = recipes.get_recipe(spec.recipe_id) if spec.recipe_id is not None else None
                if recipe is None:
                    raise NotFound("RECIPE_NOT_FOUND", recipe_id=spec.recipe_id)
                seen[spec.recipe_id] = recipe

            if not spec.recipe_name:
                spec.recipe_name = seen[spec.recipe_id].name
