"""
Bakeplan Admin.

Schedules and items are edited through the engine in normal operation; the
admin is for inspection and history (django-simple-history) lookups.
"""

from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from bakeplan.models import (
    ConsumptionTracking,
    CustomerOrder,
    CustomerOrderItem,
    InternalOrder,
    InternalOrderItem,
    InventoryItem,
    Product,
    ProductionItem,
    ProductionSchedule,
    Recipe,
    RecipeIngredient,
)


# ── Recipe ──


class RecipeIngredientInline(admin.TabularInline):
    model = RecipeIngredient
    extra = 1
    fields = ("inventory_item", "quantity", "unit", "sort_order", "notes")
    raw_id_fields = ("inventory_item",)


@admin.register(Recipe)
class RecipeAdmin(SimpleHistoryAdmin):
    """Admin for production recipes."""

    list_display = ("code", "name", "yield_quantity", "yield_unit", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")
    inlines = [RecipeIngredientInline]
    readonly_fields = ("uuid", "created_at", "updated_at")


# ── Schedule ──


class ProductionItemInline(admin.TabularInline):
    model = ProductionItem
    extra = 0
    fields = ("recipe", "recipe_name", "quantity", "status", "scheduled_time", "completed_time")
    readonly_fields = ("recipe_name", "status", "completed_time")
    raw_id_fields = ("recipe",)
    show_change_link = True


@admin.register(ProductionSchedule)
class ProductionScheduleAdmin(SimpleHistoryAdmin):
    """Admin for daily production schedules."""

    list_display = ("date", "total_items", "completed_items", "created_by", "created_at")
    date_hierarchy = "date"
    search_fields = ("notes", "created_by")
    inlines = [ProductionItemInline]
    readonly_fields = ("uuid", "total_items", "completed_items", "created_at", "updated_at")


@admin.register(ProductionItem)
class ProductionItemAdmin(SimpleHistoryAdmin):
    """Admin for production items."""

    list_display = ("recipe_name", "quantity", "status", "schedule", "scheduled_time", "completed_time")
    list_filter = ("status", "schedule__date")
    search_fields = ("recipe_name", "batch_number", "assigned_to")
    raw_id_fields = ("schedule", "recipe", "internal_order", "customer_order")
    readonly_fields = ("uuid", "start_time", "completed_time")


# ── Inventory ──


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("name", "current_stock", "minimum_stock", "unit")
    search_fields = ("name",)


@admin.register(ConsumptionTracking)
class ConsumptionTrackingAdmin(admin.ModelAdmin):
    list_display = (
        "inventory_item_id",
        "avg_daily_consumption",
        "calculation_period_days",
        "sample_size",
        "last_calculated_at",
    )
    list_filter = ("calculation_method",)
    readonly_fields = ("avg_daily_consumption", "sample_size", "last_calculated_at")


# ── Orders ──


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "recipe", "is_active")
    list_filter = ("is_active",)
    search_fields = ("sku", "name")
    raw_id_fields = ("recipe",)


class InternalOrderItemInline(admin.TabularInline):
    model = InternalOrderItem
    extra = 1
    raw_id_fields = ("product",)


@admin.register(InternalOrder)
class InternalOrderAdmin(SimpleHistoryAdmin):
    list_display = ("order_number", "status", "completed_at", "created_at")
    list_filter = ("status",)
    search_fields = ("order_number",)
    inlines = [InternalOrderItemInline]


class CustomerOrderItemInline(admin.TabularInline):
    model = CustomerOrderItem
    extra = 1
    raw_id_fields = ("product",)


@admin.register(CustomerOrder)
class CustomerOrderAdmin(SimpleHistoryAdmin):
    list_display = ("order_number", "customer_name", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("order_number", "customer_name")
    inlines = [CustomerOrderItemInline]
