"""
Django ORM repositories.

Default implementations of the repository protocols on top of the bakeplan
models. Every method is a thin query; business rules live in the services.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from django.db.models import DecimalField, F, Value
from django.db.models.functions import Greatest
from django.utils import timezone

from bakeplan.models import (
    CustomerOrder,
    InternalOrder,
    InventoryItem,
    OrderKind,
    Product,
    ProductionItem,
    ProductionSchedule,
    ProductionStatus,
    Recipe,
    RecipeIngredient,
)
from bakeplan.protocols.repositories import (
    IngredientLine,
    OrderLine,
    ProductionItemSpec,
    ScheduleSpec,
    StockLevel,
)

logger = logging.getLogger(__name__)


def _build_item(schedule_id: int, spec: ProductionItemSpec) -> ProductionItem:
    item = ProductionItem(
        schedule_id=schedule_id,
        recipe_id=spec.recipe_id,
        recipe_name=spec.recipe_name,
        quantity=spec.quantity,
        status=spec.status,
        scheduled_time=spec.scheduled_time,
        start_time=spec.start_time,
        completed_time=spec.completed_time,
        assigned_to=spec.assigned_to or "",
        notes=spec.notes or "",
        batch_number=spec.batch_number or "",
        quality_check=bool(spec.quality_check),
        quality_notes=spec.quality_notes or "",
    )
    item.order_link = spec.order_link
    return item


class OrmScheduleRepository:
    """ScheduleRepository backed by ProductionSchedule / ProductionItem."""

    def create_schedule(self, schedule: ScheduleSpec, items: list[ProductionItemSpec]) -> ProductionSchedule:
        obj = ProductionSchedule.objects.create(
            date=schedule.date,
            notes=schedule.notes or "",
            created_by=schedule.created_by or "",
            total_items=len(items),
            completed_items=sum(1 for spec in items if spec.status == ProductionStatus.COMPLETED),
        )
        # save() per item (not bulk_create) so simple_history records each insert
        for spec in items:
            _build_item(obj.pk, spec).save()
        return obj

    def get_schedule(self, schedule_id: int) -> ProductionSchedule | None:
        return ProductionSchedule.objects.filter(pk=schedule_id).first()

    def list_schedules(self, start_date: date | None = None, end_date: date | None = None) -> list[ProductionSchedule]:
        qs = ProductionSchedule.objects.prefetch_related("items")
        if start_date:
            qs = qs.filter(date__gte=start_date)
        if end_date:
            qs = qs.filter(date__lte=end_date)
        return list(qs.order_by("-date", "-created_at"))

    def update_schedule(self, schedule_id: int, fields: dict[str, Any]) -> ProductionSchedule:
        schedule = ProductionSchedule.objects.get(pk=schedule_id)
        for name, value in fields.items():
            setattr(schedule, name, value)
        schedule.save()
        return schedule

    def delete_schedule(self, schedule_id: int) -> None:
        ProductionSchedule.objects.filter(pk=schedule_id).delete()

    def get_items(self, schedule_id: int) -> list[ProductionItem]:
        return list(ProductionItem.objects.filter(schedule_id=schedule_id).order_by("scheduled_time", "id"))

    def get_item(self, item_id: int, for_update: bool = False) -> ProductionItem | None:
        qs = ProductionItem.objects.all()
        if for_update:
            qs = qs.select_for_update()
        return qs.filter(pk=item_id).first()

    def update_item(self, item_id: int, patch: dict[str, Any]) -> ProductionItem:
        item = ProductionItem.objects.get(pk=item_id)
        for name, value in patch.items():
            setattr(item, name, value)
        item.save()
        return item

    def replace_items(self, schedule_id: int, items: list[ProductionItemSpec]) -> list[ProductionItem]:
        ProductionItem.objects.filter(schedule_id=schedule_id).delete()
        created = []
        for spec in items:
            item = _build_item(schedule_id, spec)
            item.save()
            created.append(item)
        return created

    def set_totals(self, schedule_id: int, total_items: int | None = None, completed_items: int | None = None) -> None:
        fields: dict[str, Any] = {"updated_at": timezone.now()}
        if total_items is not None:
            fields["total_items"] = total_items
        if completed_items is not None:
            fields["completed_items"] = completed_items
        ProductionSchedule.objects.filter(pk=schedule_id).update(**fields)


class OrmRecipeRepository:
    """RecipeRepository backed by Recipe / RecipeIngredient."""

    def get_recipe(self, recipe_id: int) -> Recipe | None:
        return Recipe.objects.filter(pk=recipe_id).first()

    def get_ingredients(self, recipe_id: int) -> list[IngredientLine]:
        rows = RecipeIngredient.objects.filter(recipe_id=recipe_id).values_list(
            "inventory_item_id", "quantity", "unit"
        )
        return [
            IngredientLine(inventory_item_id=item_id, quantity_per_unit=quantity, unit=unit)
            for item_id, quantity, unit in rows
        ]

    def get_recipe_for_product(self, product_id: int) -> Recipe | None:
        product = Product.objects.select_related("recipe").filter(pk=product_id).first()
        if product is None:
            return None
        return product.recipe


class OrmInventoryRepository:
    """InventoryRepository backed by InventoryItem."""

    def get_stock(self, inventory_item_id: int) -> StockLevel | None:
        item = InventoryItem.objects.filter(pk=inventory_item_id).first()
        if item is None:
            return None
        return StockLevel(current_stock=item.current_stock, unit=item.unit, name=item.name)

    def set_stock(self, inventory_item_id: int, new_stock: Decimal) -> None:
        InventoryItem.objects.filter(pk=inventory_item_id).update(
            current_stock=max(Decimal("0"), Decimal(new_stock)),
            updated_at=timezone.now(),
        )

    def decrement_stock(self, inventory_item_id: int, amount: Decimal) -> bool:
        # UPDATE ... SET current_stock = GREATEST(current_stock - amount, 0)
        updated = InventoryItem.objects.filter(pk=inventory_item_id).update(
            current_stock=Greatest(
                F("current_stock") - Value(amount, output_field=DecimalField(max_digits=12, decimal_places=3)),
                Value(0),
                output_field=DecimalField(max_digits=12, decimal_places=3),
            ),
            updated_at=timezone.now(),
        )
        return updated > 0


class OrmOrderRepository:
    """OrderRepository backed by InternalOrder / CustomerOrder."""

    ORDER_MODELS = {
        OrderKind.INTERNAL: InternalOrder,
        OrderKind.CUSTOMER: CustomerOrder,
    }

    LINK_FIELDS = {
        OrderKind.INTERNAL: "internal_order_id",
        OrderKind.CUSTOMER: "customer_order_id",
    }

    def _model(self, kind):
        return self.ORDER_MODELS[OrderKind(kind)]

    def get_order(self, order_id: int, kind: OrderKind):
        return self._model(kind).objects.filter(pk=order_id).first()

    def lock_order(self, order_id: int, kind: OrderKind) -> None:
        self._model(kind).objects.select_for_update().filter(pk=order_id).first()

    def get_order_items(self, order_id: int, kind: OrderKind) -> list[OrderLine]:
        order = self.get_order(order_id, kind)
        if order is None:
            return []

        lines = []
        for item in order.items.select_related("product__recipe").order_by("id"):
            recipe = item.product.recipe
            lines.append(
                OrderLine(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    special_instructions=item.special_instructions,
                    product_name=item.product.name,
                    recipe_id=recipe.pk if recipe else None,
                    recipe_name=recipe.name if recipe else None,
                )
            )
        return lines

    def get_items_by_order_link(self, order_id: int, kind: OrderKind) -> list[ProductionItem]:
        field = self.LINK_FIELDS[OrderKind(kind)]
        return list(ProductionItem.objects.filter(**{field: order_id}).order_by("id"))

    def set_order_status(
        self,
        order_id: int,
        kind: OrderKind,
        status: str,
        completed_at: datetime | None = None,
    ) -> None:
        order = self._model(kind).objects.get(pk=order_id)
        order.status = status
        update_fields = ["status", "updated_at"]
        if completed_at is not None and hasattr(order, "completed_at"):
            order.completed_at = completed_at
            update_fields.append("completed_at")
        order.save(update_fields=update_fields)

        logger.info(
            f"{OrderKind(kind).label} {order} set to {status}",
            extra={"order_id": order_id, "order_kind": str(kind), "status": status},
        )
