"""
Initial Bakeplan schema.

- Recipe / RecipeIngredient
- InventoryItem / ConsumptionTracking
- Product, InternalOrder(Item), CustomerOrder(Item)
- ProductionSchedule / ProductionItem (single order link check constraint)
- History tracking for recipes, orders, schedules and items
"""

import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
import simple_history.models
from django.conf import settings
from django.db import migrations, models


HISTORY_TYPE_CHOICES = [("+", "Created"), ("~", "Changed"), ("-", "Deleted")]

HISTORY_OPTIONS = {
    "ordering": ("-history_date", "-history_id"),
    "get_latest_by": ("history_date", "history_id"),
}


def history_fields():
    return [
        ("history_id", models.AutoField(primary_key=True, serialize=False)),
        ("history_date", models.DateTimeField(db_index=True)),
        ("history_change_reason", models.CharField(max_length=100, null=True)),
        ("history_type", models.CharField(choices=HISTORY_TYPE_CHOICES, max_length=1)),
        (
            "history_user",
            models.ForeignKey(
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]


def historical_fk(to, verbose_name):
    return models.ForeignKey(
        blank=True,
        db_constraint=False,
        null=True,
        on_delete=django.db.models.deletion.DO_NOTHING,
        related_name="+",
        to=to,
        verbose_name=verbose_name,
    )


INTERNAL_STATUS_CHOICES = [
    ("draft", "Draft"),
    ("requested", "Requested"),
    ("approved", "Approved"),
    ("scheduled", "Scheduled"),
    ("in_production", "In production"),
    ("quality_check", "Quality check"),
    ("ready", "Ready"),
    ("completed", "Completed"),
    ("delivered", "Delivered"),
    ("cancelled", "Cancelled"),
]

CUSTOMER_STATUS_CHOICES = [
    ("draft", "Draft"),
    ("pending", "Pending"),
    ("confirmed", "Confirmed"),
    ("ready", "Ready"),
    ("delivered", "Delivered"),
    ("cancelled", "Cancelled"),
]

PRODUCTION_STATUS_CHOICES = [
    ("scheduled", "Scheduled"),
    ("in_progress", "In progress"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
]


def recipe_fields(historical=False):
    unique = {"db_index": True} if historical else {"unique": True}
    return [
        (
            "uuid",
            models.UUIDField(default=uuid.uuid4, editable=False, verbose_name="UUID", **unique),
        ),
        (
            "code",
            models.SlugField(
                help_text="Unique identifier (e.g. croissant-v1)",
                verbose_name="Code",
                **unique,
            ),
        ),
        ("name", models.CharField(max_length=200, verbose_name="Name")),
        (
            "yield_quantity",
            models.DecimalField(
                decimal_places=2,
                default=Decimal("1"),
                help_text="Units produced by one batch of the recipe",
                max_digits=10,
                verbose_name="Yield",
            ),
        ),
        ("yield_unit", models.CharField(default="un", max_length=20, verbose_name="Yield unit")),
        (
            "is_active",
            models.BooleanField(
                default=True,
                help_text="Recipe can be used for new production items",
                verbose_name="Active",
            ),
        ),
        ("notes", models.TextField(blank=True, verbose_name="Notes")),
    ]


def order_status_field(choices, default):
    return models.CharField(
        choices=choices, db_index=True, default=default, max_length=20, verbose_name="Status"
    )


def schedule_fields(historical=False):
    unique = {"db_index": True} if historical else {"unique": True}
    return [
        (
            "uuid",
            models.UUIDField(default=uuid.uuid4, editable=False, verbose_name="UUID", **unique),
        ),
        ("date", models.DateField(db_index=True, verbose_name="Production date")),
        ("total_items", models.PositiveIntegerField(default=0, verbose_name="Total items")),
        ("completed_items", models.PositiveIntegerField(default=0, verbose_name="Completed items")),
        ("notes", models.TextField(blank=True, verbose_name="Notes")),
        ("created_by", models.CharField(blank=True, max_length=255, verbose_name="Created by")),
    ]


def item_fields(historical=False):
    unique = {"db_index": True} if historical else {"unique": True}
    return [
        (
            "uuid",
            models.UUIDField(default=uuid.uuid4, editable=False, verbose_name="UUID", **unique),
        ),
        (
            "recipe_name",
            models.CharField(
                help_text="Snapshot of the recipe name at scheduling time",
                max_length=255,
                verbose_name="Recipe name",
            ),
        ),
        (
            "quantity",
            models.PositiveIntegerField(help_text="Recipe yield units to produce", verbose_name="Quantity"),
        ),
        (
            "status",
            models.CharField(
                choices=PRODUCTION_STATUS_CHOICES,
                db_index=True,
                default="scheduled",
                max_length=20,
                verbose_name="Status",
            ),
        ),
        ("scheduled_time", models.DateTimeField(db_index=True, verbose_name="Scheduled time")),
        ("start_time", models.DateTimeField(blank=True, null=True, verbose_name="Start time")),
        ("completed_time", models.DateTimeField(blank=True, null=True, verbose_name="Completed time")),
        ("assigned_to", models.CharField(blank=True, max_length=255, verbose_name="Assigned to")),
        ("notes", models.TextField(blank=True, verbose_name="Notes")),
        ("batch_number", models.CharField(blank=True, max_length=100, verbose_name="Batch number")),
        ("quality_check", models.BooleanField(default=False, verbose_name="Quality check passed")),
        ("quality_notes", models.TextField(blank=True, verbose_name="Quality notes")),
    ]


def id_field():
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


def historical_id_field():
    return ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID"))


def timestamp_fields(historical=False):
    if historical:
        return [
            ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="created at")),
            ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="updated at")),
        ]
    return [
        ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
        ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # ── Recipe ──
        migrations.CreateModel(
            name="Recipe",
            fields=[id_field(), *recipe_fields(), *timestamp_fields()],
            options={
                "verbose_name": "Recipe",
                "verbose_name_plural": "Recipes",
                "db_table": "bakeplan_recipe",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="HistoricalRecipe",
            fields=[
                historical_id_field(),
                *recipe_fields(historical=True),
                *timestamp_fields(historical=True),
                *history_fields(),
            ],
            options={
                "verbose_name": "historical Recipe",
                "verbose_name_plural": "historical Recipes",
                **HISTORY_OPTIONS,
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        # ── Inventory ──
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                id_field(),
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                ("unit", models.CharField(default="kg", max_length=20, verbose_name="Unit")),
                (
                    "current_stock",
                    models.DecimalField(
                        decimal_places=3, default=Decimal("0"), max_digits=12, verbose_name="Current stock"
                    ),
                ),
                (
                    "minimum_stock",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0"),
                        help_text="Low-stock threshold used when there is no consumption data",
                        max_digits=12,
                        verbose_name="Minimum stock",
                    ),
                ),
                *timestamp_fields(),
            ],
            options={
                "verbose_name": "Inventory item",
                "verbose_name_plural": "Inventory items",
                "db_table": "bakeplan_inventory_item",
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("current_stock__gte", 0)),
                        name="bakeplan_inventory_stock_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ConsumptionTracking",
            fields=[
                id_field(),
                (
                    "inventory_item_id",
                    models.PositiveBigIntegerField(unique=True, verbose_name="Inventory item ID"),
                ),
                (
                    "avg_daily_consumption",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0"),
                        max_digits=12,
                        verbose_name="Average daily consumption",
                    ),
                ),
                (
                    "calculation_period_days",
                    models.PositiveSmallIntegerField(default=7, verbose_name="Calculation period (days)"),
                ),
                (
                    "last_calculated_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now, verbose_name="Last calculated at"
                    ),
                ),
                (
                    "calculation_method",
                    models.CharField(
                        choices=[("historical_production", "Historical production"), ("manual", "Manual")],
                        default="historical_production",
                        max_length=30,
                        verbose_name="Calculation method",
                    ),
                ),
                (
                    "custom_reorder_threshold",
                    models.DecimalField(
                        blank=True,
                        decimal_places=3,
                        max_digits=12,
                        null=True,
                        verbose_name="Custom reorder threshold",
                    ),
                ),
                (
                    "custom_lead_time_days",
                    models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="Custom lead time (days)"),
                ),
                (
                    "sample_size",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Completed production items behind the average",
                        verbose_name="Sample size",
                    ),
                ),
                *timestamp_fields(),
            ],
            options={
                "verbose_name": "Consumption tracking",
                "verbose_name_plural": "Consumption tracking",
                "db_table": "bakeplan_consumption_tracking",
                "ordering": ["inventory_item_id"],
            },
        ),
        migrations.CreateModel(
            name="RecipeIngredient",
            fields=[
                id_field(),
                (
                    "quantity",
                    models.DecimalField(
                        decimal_places=3,
                        help_text="Quantity per yield unit",
                        max_digits=10,
                        verbose_name="Quantity",
                    ),
                ),
                (
                    "unit",
                    models.CharField(default="kg", help_text="kg, g, L, un...", max_length=20, verbose_name="Unit"),
                ),
                ("sort_order", models.PositiveSmallIntegerField(default=0, verbose_name="Order")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                (
                    "recipe",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ingredients",
                        to="bakeplan.recipe",
                        verbose_name="Recipe",
                    ),
                ),
                (
                    "inventory_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="recipe_ingredients",
                        to="bakeplan.inventoryitem",
                        verbose_name="Inventory item",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ingredient",
                "verbose_name_plural": "Ingredients",
                "db_table": "bakeplan_recipe_ingredient",
                "ordering": ["recipe", "sort_order", "id"],
                "unique_together": {("recipe", "inventory_item")},
            },
        ),
        # ── Orders ──
        migrations.CreateModel(
            name="Product",
            fields=[
                id_field(),
                ("sku", models.CharField(max_length=50, unique=True, verbose_name="SKU")),
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                (
                    "recipe",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="bakeplan.recipe",
                        verbose_name="Recipe",
                    ),
                ),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "db_table": "bakeplan_product",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="InternalOrder",
            fields=[
                id_field(),
                ("order_number", models.CharField(max_length=50, unique=True, verbose_name="Order number")),
                ("status", order_status_field(INTERNAL_STATUS_CHOICES, "requested")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="Completed at")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                *timestamp_fields(),
            ],
            options={
                "verbose_name": "Internal order",
                "verbose_name_plural": "Internal orders",
                "db_table": "bakeplan_internal_order",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="HistoricalInternalOrder",
            fields=[
                historical_id_field(),
                ("order_number", models.CharField(db_index=True, max_length=50, verbose_name="Order number")),
                ("status", order_status_field(INTERNAL_STATUS_CHOICES, "requested")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="Completed at")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                *timestamp_fields(historical=True),
                *history_fields(),
            ],
            options={
                "verbose_name": "historical Internal order",
                "verbose_name_plural": "historical Internal orders",
                **HISTORY_OPTIONS,
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="InternalOrderItem",
            fields=[
                id_field(),
                ("quantity", models.PositiveIntegerField(verbose_name="Quantity")),
                ("special_instructions", models.TextField(blank=True, verbose_name="Special instructions")),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="bakeplan.internalorder",
                        verbose_name="Order",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="bakeplan.product",
                        verbose_name="Product",
                    ),
                ),
            ],
            options={
                "verbose_name": "Internal order item",
                "verbose_name_plural": "Internal order items",
                "db_table": "bakeplan_internal_order_item",
                "ordering": ["order", "id"],
            },
        ),
        migrations.CreateModel(
            name="CustomerOrder",
            fields=[
                id_field(),
                ("order_number", models.CharField(max_length=50, unique=True, verbose_name="Order number")),
                ("customer_name", models.CharField(blank=True, max_length=200, verbose_name="Customer")),
                ("status", order_status_field(CUSTOMER_STATUS_CHOICES, "pending")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                *timestamp_fields(),
            ],
            options={
                "verbose_name": "Customer order",
                "verbose_name_plural": "Customer orders",
                "db_table": "bakeplan_customer_order",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="HistoricalCustomerOrder",
            fields=[
                historical_id_field(),
                ("order_number", models.CharField(db_index=True, max_length=50, verbose_name="Order number")),
                ("customer_name", models.CharField(blank=True, max_length=200, verbose_name="Customer")),
                ("status", order_status_field(CUSTOMER_STATUS_CHOICES, "pending")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                *timestamp_fields(historical=True),
                *history_fields(),
            ],
            options={
                "verbose_name": "historical Customer order",
                "verbose_name_plural": "historical Customer orders",
                **HISTORY_OPTIONS,
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="CustomerOrderItem",
            fields=[
                id_field(),
                ("quantity", models.PositiveIntegerField(verbose_name="Quantity")),
                ("special_instructions", models.TextField(blank=True, verbose_name="Special instructions")),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="bakeplan.customerorder",
                        verbose_name="Order",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="bakeplan.product",
                        verbose_name="Product",
                    ),
                ),
            ],
            options={
                "verbose_name": "Customer order item",
                "verbose_name_plural": "Customer order items",
                "db_table": "bakeplan_customer_order_item",
                "ordering": ["order", "id"],
            },
        ),
        # ── Schedule ──
        migrations.CreateModel(
            name="ProductionSchedule",
            fields=[id_field(), *schedule_fields(), *timestamp_fields()],
            options={
                "verbose_name": "Production schedule",
                "verbose_name_plural": "Production schedules",
                "db_table": "bakeplan_production_schedule",
                "ordering": ["-date", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="HistoricalProductionSchedule",
            fields=[
                historical_id_field(),
                *schedule_fields(historical=True),
                *timestamp_fields(historical=True),
                *history_fields(),
            ],
            options={
                "verbose_name": "historical Production schedule",
                "verbose_name_plural": "historical Production schedules",
                **HISTORY_OPTIONS,
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="ProductionItem",
            fields=[
                id_field(),
                *item_fields(),
                (
                    "schedule",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="bakeplan.productionschedule",
                        verbose_name="Schedule",
                    ),
                ),
                (
                    "recipe",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="production_items",
                        to="bakeplan.recipe",
                        verbose_name="Recipe",
                    ),
                ),
                (
                    "internal_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="production_items",
                        to="bakeplan.internalorder",
                        verbose_name="Internal order",
                    ),
                ),
                (
                    "customer_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="production_items",
                        to="bakeplan.customerorder",
                        verbose_name="Customer order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Production item",
                "verbose_name_plural": "Production items",
                "db_table": "bakeplan_production_item",
                "ordering": ["scheduled_time", "id"],
                "indexes": [
                    models.Index(fields=["schedule", "status"], name="bakeplan_item_sched_status_idx"),
                    models.Index(fields=["recipe", "status"], name="bakeplan_item_recipe_stat_idx"),
                    models.Index(fields=["status", "completed_time"], name="bakeplan_item_stat_done_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("internal_order__isnull", True),
                            ("customer_order__isnull", True),
                            _connector="OR",
                        ),
                        name="bakeplan_item_single_order_link",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="bakeplan_item_quantity_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="HistoricalProductionItem",
            fields=[
                historical_id_field(),
                *item_fields(historical=True),
                *history_fields(),
                ("schedule", historical_fk("bakeplan.productionschedule", "Schedule")),
                ("recipe", historical_fk("bakeplan.recipe", "Recipe")),
                ("internal_order", historical_fk("bakeplan.internalorder", "Internal order")),
                ("customer_order", historical_fk("bakeplan.customerorder", "Customer order")),
            ],
            options={
                "verbose_name": "historical Production item",
                "verbose_name_plural": "historical Production items",
                **HISTORY_OPTIONS,
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
