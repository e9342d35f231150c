"""
Tests for the order-completion cascade (bakeplan.services.cascade).
"""

from datetime import date
from decimal import Decimal
from unittest.mock import ANY, patch

import pytest
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction

from bakeplan import TransactionFailed, production
from bakeplan.adapters.orm import OrmOrderRepository
from bakeplan.conf import CASCADE_IGNORE_CANCELLED, CASCADE_STRICT, get_cascade_policy
from bakeplan.models import (
    CustomerOrder,
    CustomerOrderItem,
    CustomerOrderStatus,
    InternalOrder,
    InternalOrderStatus,
    InventoryItem,
    OrderKind,
    Product,
    ProductionItem,
    Recipe,
    RecipeIngredient,
)
from bakeplan.services.cascade import order_is_fulfilled
from bakeplan.signals import order_cascaded


PRODUCTION_DATE = date(2025, 1, 24)


@pytest.fixture
def bread(db):
    flour = InventoryItem.objects.create(name="Flour", unit="kg", current_stock=Decimal("100"))
    recipe = Recipe.objects.create(code="bread", name="Country Bread")
    RecipeIngredient.objects.create(recipe=recipe, inventory_item=flour, quantity=Decimal("0.5"), unit="kg")
    return recipe


@pytest.fixture
def cake(db):
    return Recipe.objects.create(code="cake", name="Carrot Cake")


@pytest.fixture
def customer_order(db, bread, cake):
    bread_product = Product.objects.create(sku="BREAD-001", name="Country Bread", recipe=bread)
    cake_product = Product.objects.create(sku="CAKE-001", name="Carrot Cake", recipe=cake)
    order = CustomerOrder.objects.create(order_number="C-1001", customer_name="Ana")
    CustomerOrderItem.objects.create(order=order, product=bread_product, quantity=2)
    CustomerOrderItem.objects.create(order=order, product=cake_product, quantity=1)
    return order


@pytest.fixture
def internal_order(db):
    return InternalOrder.objects.create(order_number="I-2001")


def linked_items(recipe, order, count=1, day=PRODUCTION_DATE):
    """Create a schedule with ``count`` items linked to an internal order."""
    schedule = production.create_schedule(
        day,
        [
            {"recipe_id": recipe.pk, "quantity": 1, "order_id": order.pk, "order_kind": "internal"}
            for _ in range(count)
        ],
    ).schedule
    return list(schedule.items.order_by("id"))


@pytest.fixture
def cascades():
    received = []

    def handler(sender, link, status, **kwargs):
        received.append((link.kind.value, link.order_id, status))

    order_cascaded.connect(handler)
    yield received
    order_cascaded.disconnect(handler)


class TestOrderIsFulfilled:
    """Unit tests for the completion predicate."""

    @pytest.mark.parametrize(
        "statuses,policy,expected",
        [
            (["completed", "completed"], CASCADE_STRICT, True),
            (["completed", "scheduled"], CASCADE_STRICT, False),
            (["completed", "in_progress"], CASCADE_STRICT, False),
            (["completed", "cancelled"], CASCADE_STRICT, False),
            (["completed", "cancelled"], CASCADE_IGNORE_CANCELLED, True),
            (["cancelled", "cancelled"], CASCADE_IGNORE_CANCELLED, False),
            (["completed", "scheduled", "cancelled"], CASCADE_IGNORE_CANCELLED, False),
            ([], CASCADE_STRICT, False),
            ([], CASCADE_IGNORE_CANCELLED, False),
        ],
    )
    def test_predicate(self, statuses, policy, expected):
        assert order_is_fulfilled(statuses, policy) is expected


class TestCustomerOrderCascade:
    """Customer orders become ready once every item is produced."""

    def test_ready_only_after_last_item(self, customer_order):
        schedule = production.create_schedule_from_order(customer_order.pk, PRODUCTION_DATE, "customer").schedule
        first, second = schedule.items.order_by("id")

        result = production.complete_production(first.pk, quality_check=True)
        customer_order.refresh_from_db()
        assert result.cascaded_status is None
        assert customer_order.status == CustomerOrderStatus.CONFIRMED

        result = production.complete_production(second.pk, quality_check=True)
        customer_order.refresh_from_db()
        assert result.cascaded_status == "ready"
        assert customer_order.status == CustomerOrderStatus.READY

    def test_redundant_completion_does_not_cascade_again(self, customer_order):
        schedule = production.create_schedule_from_order(customer_order.pk, PRODUCTION_DATE, "customer").schedule
        for item in schedule.items.all():
            production.complete_production(item.pk, quality_check=True)
        CustomerOrder.objects.filter(pk=customer_order.pk).update(status=CustomerOrderStatus.DELIVERED)

        result = production.complete_production(schedule.items.first().pk, quality_check=True)

        customer_order.refresh_from_db()
        assert result.cascaded_status is None
        assert customer_order.status == CustomerOrderStatus.DELIVERED


class TestInternalOrderCascade:
    """Internal orders become completed, with a completion timestamp."""

    def test_single_item_completes_order(self, bread, internal_order):
        (item,) = linked_items(bread, internal_order)

        result = production.complete_production(item.pk, quality_check=True)

        internal_order.refresh_from_db()
        assert result.cascaded_status == "completed"
        assert internal_order.status == InternalOrderStatus.COMPLETED
        assert internal_order.completed_at is not None

    def test_items_across_schedules(self, bread, internal_order):
        """Every linked item counts, whatever schedule it lives in."""
        (first,) = linked_items(bread, internal_order)
        (second,) = linked_items(bread, internal_order, day=date(2025, 1, 25))

        production.complete_production(first.pk, quality_check=True)
        internal_order.refresh_from_db()
        assert internal_order.status == InternalOrderStatus.REQUESTED

        production.complete_production(second.pk, quality_check=True)
        internal_order.refresh_from_db()
        assert internal_order.status == InternalOrderStatus.COMPLETED

    def test_start_does_not_cascade(self, bread, internal_order):
        (item,) = linked_items(bread, internal_order)

        production.start_production(item.pk)

        internal_order.refresh_from_db()
        assert internal_order.status == InternalOrderStatus.REQUESTED

    def test_unlinked_item_does_not_cascade(self, bread, internal_order):
        schedule = production.create_schedule(PRODUCTION_DATE, [{"recipe_id": bread.pk, "quantity": 1}]).schedule

        result = production.complete_production(schedule.items.get().pk, quality_check=True)

        internal_order.refresh_from_db()
        assert result.cascaded_status is None
        assert internal_order.status == InternalOrderStatus.REQUESTED

    def test_signal_after_commit(self, bread, internal_order, cascades, django_capture_on_commit_callbacks):
        (item,) = linked_items(bread, internal_order)

        with django_capture_on_commit_callbacks(execute=True):
            production.complete_production(item.pk, quality_check=True)

        assert cascades == [("internal", internal_order.pk, "completed")]


class TestCascadePolicy:
    """Cancelled siblings under each policy."""

    def test_strict_cancelled_sibling_blocks(self, bread, internal_order):
        first, second = linked_items(bread, internal_order, count=2)

        production.cancel_production(first.pk, reason="Dropped")
        result = production.complete_production(second.pk, quality_check=True)

        internal_order.refresh_from_db()
        assert result.cascaded_status is None
        assert internal_order.status == InternalOrderStatus.REQUESTED

    def test_strict_scheduled_sibling_blocks(self, bread, internal_order):
        first, second = linked_items(bread, internal_order, count=2)

        production.complete_production(second.pk, quality_check=True)

        internal_order.refresh_from_db()
        assert internal_order.status == InternalOrderStatus.REQUESTED

    def test_ignore_cancelled(self, bread, internal_order, settings):
        settings.BAKEPLAN = {"CASCADE_POLICY": CASCADE_IGNORE_CANCELLED}
        first, second = linked_items(bread, internal_order, count=2)

        production.cancel_production(first.pk)
        result = production.complete_production(second.pk, quality_check=True)

        internal_order.refresh_from_db()
        assert result.cascaded_status == "completed"
        assert internal_order.status == InternalOrderStatus.COMPLETED

    def test_ignore_cancelled_cancelling_last_blocker_cascades(
        self, bread, internal_order, settings, cascades, django_capture_on_commit_callbacks
    ):
        settings.BAKEPLAN = {"CASCADE_POLICY": CASCADE_IGNORE_CANCELLED}
        first, second = linked_items(bread, internal_order, count=2)
        production.complete_production(first.pk, quality_check=True)

        with django_capture_on_commit_callbacks(execute=True):
            result = production.cancel_production(second.pk, reason="Oven down")

        internal_order.refresh_from_db()
        assert result.cascaded_status == "completed"
        assert result.deductions == []
        assert internal_order.status == InternalOrderStatus.COMPLETED
        assert internal_order.completed_at is not None
        assert cascades == [("internal", internal_order.pk, "completed")]

    def test_ignore_cancelled_all_cancelled_does_not_cascade(self, bread, internal_order, settings):
        settings.BAKEPLAN = {"CASCADE_POLICY": CASCADE_IGNORE_CANCELLED}
        first, second = linked_items(bread, internal_order, count=2)

        production.cancel_production(first.pk)
        result = production.cancel_production(second.pk)

        internal_order.refresh_from_db()
        assert result.cascaded_status is None
        assert internal_order.status == InternalOrderStatus.REQUESTED

    def test_strict_cancelling_last_blocker_does_not_cascade(self, bread, internal_order):
        first, second = linked_items(bread, internal_order, count=2)
        production.complete_production(first.pk, quality_check=True)

        result = production.cancel_production(second.pk)

        internal_order.refresh_from_db()
        assert result.cascaded_status is None
        assert internal_order.status == InternalOrderStatus.REQUESTED

    def test_ignore_cancelled_still_waits_for_scheduled(self, bread, internal_order, settings):
        settings.BAKEPLAN = {"CASCADE_POLICY": CASCADE_IGNORE_CANCELLED}
        first, second, third = linked_items(bread, internal_order, count=3)

        production.cancel_production(first.pk)
        production.complete_production(second.pk, quality_check=True)

        internal_order.refresh_from_db()
        assert internal_order.status == InternalOrderStatus.REQUESTED

    def test_unknown_policy_rolls_back_completion(self, bread, internal_order, settings):
        settings.BAKEPLAN = {"CASCADE_POLICY": "lenient"}
        (item,) = linked_items(bread, internal_order)
        flour = InventoryItem.objects.get(name="Flour")

        with pytest.raises(TransactionFailed) as exc:
            production.complete_production(item.pk, quality_check=True)

        assert exc.value.details["failed_step"] == "order_cascade"
        assert "deduct_inventory" in exc.value.details["completed_steps"]
        flour.refresh_from_db()
        item.refresh_from_db()
        assert flour.current_stock == Decimal("100")
        assert item.status == "scheduled"

    def test_unknown_policy_rejected(self, settings):
        settings.BAKEPLAN = {"CASCADE_POLICY": "lenient"}

        with pytest.raises(ImproperlyConfigured):
            get_cascade_policy()


class TestOrderLock:
    """Items linked to an order lock the order row before anything is written."""

    def test_lock_taken_before_item_is_persisted(self, bread, internal_order):
        (item,) = linked_items(bread, internal_order)
        seen = []

        def record(repository, order_id, kind):
            seen.append((order_id, kind, ProductionItem.objects.get(pk=item.pk).status))

        with patch.object(OrmOrderRepository, "lock_order", autospec=True, side_effect=record):
            production.complete_production(item.pk, quality_check=True)

        assert seen == [(internal_order.pk, OrderKind.INTERNAL, "scheduled")]

    def test_lock_taken_on_cancel(self, bread, internal_order):
        (item,) = linked_items(bread, internal_order)

        with patch.object(OrmOrderRepository, "lock_order", autospec=True) as lock:
            production.cancel_production(item.pk)

        lock.assert_called_once_with(ANY, internal_order.pk, OrderKind.INTERNAL)

    def test_unlinked_item_takes_no_lock(self, bread):
        schedule = production.create_schedule(PRODUCTION_DATE, [{"recipe_id": bread.pk, "quantity": 1}]).schedule

        with patch.object(OrmOrderRepository, "lock_order", autospec=True) as lock:
            production.complete_production(schedule.items.get().pk, quality_check=True)

        lock.assert_not_called()

    def test_orm_lock_order(self, internal_order, customer_order):
        repository = OrmOrderRepository()

        with transaction.atomic():
            repository.lock_order(internal_order.pk, OrderKind.INTERNAL)
            repository.lock_order(customer_order.pk, OrderKind.CUSTOMER)
            repository.lock_order(999, OrderKind.INTERNAL)
