"""
Tests for Bakeplan API ViewSets (bakeplan.api.views).

Verifies DRF endpoints for schedules, item lifecycle and consumption, and
the mapping of engine errors to HTTP statuses.
"""

import pytest

pytestmark = pytest.mark.urls("bakeplan.tests.test_api_urls")
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.utils import timezone

from rest_framework.test import APIClient

from bakeplan import production
from bakeplan.models import (
    ConsumptionTracking,
    CustomerOrder,
    CustomerOrderItem,
    CustomerOrderStatus,
    InventoryItem,
    Product,
    ProductionItem,
    ProductionSchedule,
    ProductionStatus,
    Recipe,
    RecipeIngredient,
)

User = get_user_model()

BASE = "/api/bakeplan"


# ═══════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def user(db):
    return User.objects.create_user(username="maria", password="test123")


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def flour(db):
    return InventoryItem.objects.create(name="Flour", unit="g", current_stock=Decimal("5000"))


@pytest.fixture
def bread(db, flour):
    recipe = Recipe.objects.create(code="bread", name="Country Bread")
    RecipeIngredient.objects.create(recipe=recipe, inventory_item=flour, quantity=Decimal("500"), unit="g")
    return recipe


@pytest.fixture
def schedule(bread):
    return production.create_schedule(
        date(2025, 1, 24),
        [{"recipe_id": bread.pk, "quantity": 10}, {"recipe_id": bread.pk, "quantity": 2}],
    ).schedule


@pytest.fixture
def item(schedule):
    return schedule.items.order_by("id").first()


def item_url(schedule, item, suffix=""):
    return f"{BASE}/schedules/{schedule.pk}/items/{item.pk}/{suffix}"


# ═══════════════════════════════════════════════════════════════════
# Schedules
# ═══════════════════════════════════════════════════════════════════


class TestScheduleEndpoints:
    """CRUD on /schedules/."""

    def test_requires_authentication(self, db):
        response = APIClient().get(f"{BASE}/schedules/")

        assert response.status_code in (401, 403)

    def test_create(self, api_client, bread):
        response = api_client.post(
            f"{BASE}/schedules/",
            {"date": "2025-01-24", "notes": "Friday", "items": [{"recipe_id": bread.pk, "quantity": 4}]},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["date"] == "2025-01-24"
        assert data["total_items"] == 1
        assert data["created_by"] == "maria"
        assert data["warnings"] == []
        assert data["items"][0]["recipe_name"] == "Country Bread"
        assert data["items"][0]["status"] == "scheduled"

    def test_create_with_shortfall_warning(self, api_client, bread, flour):
        response = api_client.post(
            f"{BASE}/schedules/",
            {"date": "2025-01-24", "items": [{"recipe_id": bread.pk, "quantity": 12}]},
            format="json",
        )

        assert response.status_code == 201
        warnings = response.json()["warnings"]
        assert len(warnings) == 1
        assert warnings[0]["inventory_item_id"] == flour.pk
        assert warnings[0]["message"] == "Insufficient Flour: need 6000 g, have 5000 g"

    def test_create_empty_schedule(self, api_client, db):
        response = api_client.post(f"{BASE}/schedules/", {"date": "2025-01-24", "items": []}, format="json")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "EMPTY_SCHEDULE"

    def test_create_invalid_quantity(self, api_client, bread):
        response = api_client.post(
            f"{BASE}/schedules/",
            {"date": "2025-01-24", "items": [{"recipe_id": bread.pk, "quantity": 0}]},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_QUANTITY"

    def test_create_unknown_recipe(self, api_client, db):
        response = api_client.post(
            f"{BASE}/schedules/",
            {"date": "2025-01-24", "items": [{"recipe_id": 999, "quantity": 1}]},
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["error"] == {"code": "RECIPE_NOT_FOUND", "recipe_id": 999}

    def test_list_with_range(self, api_client, bread):
        for day in (date(2025, 1, 20), date(2025, 1, 22), date(2025, 1, 24)):
            production.create_schedule(day, [{"recipe_id": bread.pk, "quantity": 1}])

        response = api_client.get(f"{BASE}/schedules/", {"start_date": "2025-01-21", "end_date": "2025-01-24"})

        assert response.status_code == 200
        assert [s["date"] for s in response.json()] == ["2025-01-24", "2025-01-22"]

    def test_list_invalid_date(self, api_client, db):
        response = api_client.get(f"{BASE}/schedules/", {"start_date": "24/01/2025"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_DATE"

    def test_retrieve(self, api_client, schedule):
        response = api_client.get(f"{BASE}/schedules/{schedule.pk}/")

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 2
        assert data["progress"] == {"completed": 0, "total": 2, "percentage": 0}

    def test_retrieve_not_found(self, api_client, db):
        response = api_client.get(f"{BASE}/schedules/999/")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SCHEDULE_NOT_FOUND"

    def test_partial_update_notes(self, api_client, schedule):
        response = api_client.patch(f"{BASE}/schedules/{schedule.pk}/", {"notes": "Moved"}, format="json")

        assert response.status_code == 200
        assert response.json()["notes"] == "Moved"
        assert response.json()["total_items"] == 2

    def test_partial_update_with_empty_items(self, api_client, schedule):
        """Notes still change; the existing items stay."""
        response = api_client.patch(
            f"{BASE}/schedules/{schedule.pk}/",
            {"notes": "Moved", "items": []},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["notes"] == "Moved"
        assert response.json()["total_items"] == 2
        assert ProductionItem.objects.filter(schedule=schedule).count() == 2

    def test_update_replaces_items(self, api_client, schedule, bread):
        response = api_client.put(
            f"{BASE}/schedules/{schedule.pk}/",
            {"items": [{"recipe_id": bread.pk, "quantity": 1}]},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["total_items"] == 1
        assert ProductionItem.objects.filter(schedule=schedule).count() == 1

    def test_destroy(self, api_client, schedule):
        response = api_client.delete(f"{BASE}/schedules/{schedule.pk}/")

        assert response.status_code == 204
        assert not ProductionSchedule.objects.filter(pk=schedule.pk).exists()
        assert ProductionItem.objects.count() == 0

    def test_from_order(self, api_client, bread):
        product = Product.objects.create(sku="BREAD-001", name="Country Bread", recipe=bread)
        order = CustomerOrder.objects.create(order_number="C-1001")
        CustomerOrderItem.objects.create(order=order, product=product, quantity=3)

        response = api_client.post(
            f"{BASE}/schedules/from-order/",
            {"order_id": order.pk, "order_kind": "customer", "scheduled_date": "2025-01-24"},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["notes"] == "Created from customer order C-1001"
        assert data["items"][0]["order_id"] == order.pk
        assert data["items"][0]["order_kind"] == "customer"
        order.refresh_from_db()
        assert order.status == CustomerOrderStatus.CONFIRMED

    def test_from_order_not_found(self, api_client, db):
        response = api_client.post(
            f"{BASE}/schedules/from-order/",
            {"order_id": 999, "order_kind": "internal", "scheduled_date": "2025-01-24"},
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ORDER_NOT_FOUND"


# ═══════════════════════════════════════════════════════════════════
# Items
# ═══════════════════════════════════════════════════════════════════


class TestItemEndpoints:
    """Item lifecycle under /schedules/{id}/items/{item_id}/."""

    def test_start(self, api_client, schedule, item):
        response = api_client.post(item_url(schedule, item, "start/"))

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "in_progress"
        assert data["start_time"] is not None
        assert data["deductions"] == []

    def test_complete_deducts(self, api_client, schedule, item, flour):
        response = api_client.post(
            item_url(schedule, item, "complete/"),
            {"quality_check": True, "quality_notes": "Golden"},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["quality_check"] is True
        assert data["deductions"] == [{"inventory_item_id": flour.pk, "quantity": "5000.000", "unit": "g"}]
        assert data["cascaded_status"] is None
        flour.refresh_from_db()
        assert flour.current_stock == Decimal("0")

    def test_complete_twice_deducts_once(self, api_client, schedule, item, flour):
        api_client.post(item_url(schedule, item, "complete/"), {"quality_check": True}, format="json")
        InventoryItem.objects.filter(pk=flour.pk).update(current_stock=Decimal("700"))

        response = api_client.post(item_url(schedule, item, "complete/"), {"quality_check": True}, format="json")

        assert response.status_code == 200
        assert response.json()["deductions"] == []
        flour.refresh_from_db()
        assert flour.current_stock == Decimal("700")

    def test_cancel(self, api_client, schedule, item):
        response = api_client.post(item_url(schedule, item, "cancel/"), {"reason": "Oven down"}, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["notes"] == "Oven down"

    def test_patch(self, api_client, schedule, item):
        response = api_client.patch(
            item_url(schedule, item),
            {"status": "in_progress", "assigned_to": "joao", "batch_number": "B-17"},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "in_progress"
        assert data["assigned_to"] == "joao"

    def test_patch_invalid_transition(self, api_client, schedule, item):
        production.complete_production(item.pk, quality_check=True)

        response = api_client.patch(item_url(schedule, item), {"status": "scheduled"}, format="json")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_TRANSITION"
        assert error["current"] == "completed"
        assert error["target"] == "scheduled"

    def test_patch_invalid_timestamp(self, api_client, schedule, item):
        response = api_client.patch(
            item_url(schedule, item),
            {"completed_time": timezone.now().isoformat()},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_TIMESTAMP"

    def test_item_of_other_schedule(self, api_client, schedule, item, bread):
        other = production.create_schedule(date(2025, 1, 25), [{"recipe_id": bread.pk, "quantity": 1}]).schedule

        for response in (
            api_client.patch(item_url(other, item), {"status": "in_progress"}, format="json"),
            api_client.post(item_url(other, item, "start/")),
        ):
            assert response.status_code == 404
            assert response.json()["error"]["code"] == "ITEM_NOT_FOUND"

        item.refresh_from_db()
        assert item.status == ProductionStatus.SCHEDULED

    def test_rollback_returns_conflict(self, api_client, schedule, item, flour):
        with patch(
            "bakeplan.services.execution.deduct_for_item",
            side_effect=RuntimeError("ledger offline"),
        ):
            response = api_client.post(item_url(schedule, item, "complete/"), {"quality_check": True}, format="json")

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "COMPLETION_FAILED"
        assert error["failed_step"] == "deduct_inventory"
        item.refresh_from_db()
        assert item.status == ProductionStatus.SCHEDULED


# ═══════════════════════════════════════════════════════════════════
# Consumption
# ═══════════════════════════════════════════════════════════════════


class TestConsumptionEndpoints:
    """Tests for /consumption/{inventory_item_id}/."""

    def test_retrieve(self, api_client, flour):
        ConsumptionTracking.objects.create(
            inventory_item_id=flour.pk,
            avg_daily_consumption=Decimal("1000"),
            last_calculated_at=timezone.now(),
        )

        response = api_client.get(f"{BASE}/consumption/{flour.pk}/")

        assert response.status_code == 200
        data = response.json()
        assert data["days_of_supply_remaining"] == 5.0
        assert data["predicted_stockout_date"] == (timezone.localdate() + timedelta(days=5)).isoformat()
        assert data["is_low_stock"] is False

    def test_retrieve_without_tracking(self, api_client, flour):
        response = api_client.get(f"{BASE}/consumption/{flour.pk}/")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "TRACKING_NOT_FOUND"

    def test_retrieve_unknown_item(self, api_client, db):
        response = api_client.get(f"{BASE}/consumption/999/")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVENTORY_ITEM_NOT_FOUND"

    def test_recalculate(self, api_client, schedule, item, flour):
        production.complete_production(item.pk, quality_check=True)
        InventoryItem.objects.filter(pk=flour.pk).update(current_stock=Decimal("7000"))

        response = api_client.post(f"{BASE}/consumption/{flour.pk}/recalculate/")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["avg_daily_consumption"]) == Decimal("714.286")
        assert data["sample_size"] == 1
        assert data["days_of_supply_remaining"] == 9.8
        assert data["is_low_stock"] is False
