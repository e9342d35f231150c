"""
Bakeplan API Serializers.

Read serializers render models; input serializers only shape request data.
Business validation (quantities, transitions, order links) happens in the
engine so API and Python callers get the same error codes.
"""

from rest_framework import serializers

from bakeplan.models import (
    ConsumptionTracking,
    OrderKind,
    ProductionItem,
    ProductionSchedule,
    ProductionStatus,
)
from bakeplan.services.consumption import ConsumptionRecalculationJob


# ══════════════════════════════════════════════════════════════
# READ
# ══════════════════════════════════════════════════════════════


class ProductionItemSerializer(serializers.ModelSerializer):
    """Serializer for ProductionItem model."""

    order_id = serializers.IntegerField(read_only=True)
    order_kind = serializers.CharField(read_only=True)

    class Meta:
        model = ProductionItem
        fields = [
            "id",
            "uuid",
            "schedule",
            "recipe",
            "recipe_name",
            "quantity",
            "status",
            "scheduled_time",
            "start_time",
            "completed_time",
            "assigned_to",
            "notes",
            "batch_number",
            "quality_check",
            "quality_notes",
            "order_id",
            "order_kind",
        ]
        read_only_fields = fields


class ProductionScheduleSerializer(serializers.ModelSerializer):
    """Serializer for ProductionSchedule model."""

    items = ProductionItemSerializer(many=True, read_only=True)
    progress = serializers.DictField(read_only=True)

    class Meta:
        model = ProductionSchedule
        fields = [
            "id",
            "uuid",
            "date",
            "total_items",
            "completed_items",
            "progress",
            "notes",
            "created_by",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InventoryShortageSerializer(serializers.Serializer):
    """Projected shortfall returned as a warning."""

    inventory_item_id = serializers.IntegerField()
    name = serializers.CharField()
    required = serializers.DecimalField(max_digits=14, decimal_places=3)
    available = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit = serializers.CharField()
    message = serializers.CharField()


class DeductionSerializer(serializers.Serializer):
    inventory_item_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit = serializers.CharField()


class ConsumptionTrackingSerializer(serializers.ModelSerializer):
    """
    Consumption tracking with derived supply analytics.

    Expects the inventory item in context["inventory_item"].
    """

    days_of_supply_remaining = serializers.SerializerMethodField()
    predicted_stockout_date = serializers.SerializerMethodField()
    is_low_stock = serializers.SerializerMethodField()

    class Meta:
        model = ConsumptionTracking
        fields = [
            "id",
            "inventory_item_id",
            "avg_daily_consumption",
            "calculation_period_days",
            "last_calculated_at",
            "calculation_method",
            "custom_reorder_threshold",
            "custom_lead_time_days",
            "sample_size",
            "days_of_supply_remaining",
            "predicted_stockout_date",
            "is_low_stock",
        ]
        read_only_fields = fields

    def _stock(self):
        return self.context["inventory_item"].current_stock

    def get_days_of_supply_remaining(self, obj) -> float:
        return float(ConsumptionRecalculationJob.days_of_supply(self._stock(), obj.avg_daily_consumption))

    def get_predicted_stockout_date(self, obj):
        return ConsumptionRecalculationJob.predicted_stockout_date(self._stock(), obj.avg_daily_consumption)

    def get_is_low_stock(self, obj) -> bool:
        return ConsumptionRecalculationJob.is_low_stock(self.context["inventory_item"], obj)


# ══════════════════════════════════════════════════════════════
# INPUT
# ══════════════════════════════════════════════════════════════


class ProductionItemInputSerializer(serializers.Serializer):
    """One item of a schedule being created or replaced."""

    recipe_id = serializers.IntegerField()
    quantity = serializers.IntegerField()
    scheduled_time = serializers.DateTimeField(required=False, allow_null=True)
    recipe_name = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=ProductionStatus.choices, required=False)
    start_time = serializers.DateTimeField(required=False, allow_null=True)
    completed_time = serializers.DateTimeField(required=False, allow_null=True)
    assigned_to = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    batch_number = serializers.CharField(required=False, allow_blank=True)
    quality_check = serializers.BooleanField(required=False)
    quality_notes = serializers.CharField(required=False, allow_blank=True)
    order_id = serializers.IntegerField(required=False, allow_null=True)
    order_kind = serializers.ChoiceField(choices=OrderKind.choices, required=False, allow_null=True)


class ScheduleCreateSerializer(serializers.Serializer):
    """
    POST /schedules/
    {
        "date": "2025-01-24",
        "notes": "",
        "items": [{"recipe_id": 1, "quantity": 10}]
    }
    """

    date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    created_by = serializers.CharField(required=False, allow_blank=True, default="")
    items = ProductionItemInputSerializer(many=True, allow_empty=True)


class ScheduleUpdateSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = ProductionItemInputSerializer(many=True, required=False, allow_empty=True)


class ScheduleFromOrderSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    order_kind = serializers.ChoiceField(choices=OrderKind.choices)
    scheduled_date = serializers.DateField()
    created_by = serializers.CharField(required=False, allow_blank=True, default="")


class ProductionItemPatchSerializer(serializers.Serializer):
    """Patchable item fields; omitted fields stay unchanged."""

    status = serializers.ChoiceField(choices=ProductionStatus.choices, required=False)
    start_time = serializers.DateTimeField(required=False, allow_null=True)
    completed_time = serializers.DateTimeField(required=False, allow_null=True)
    assigned_to = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    batch_number = serializers.CharField(required=False, allow_blank=True)
    quality_check = serializers.BooleanField(required=False)
    quality_notes = serializers.CharField(required=False, allow_blank=True)


class ProductionItemCompleteSerializer(serializers.Serializer):
    quality_check = serializers.BooleanField(default=False)
    quality_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ProductionItemCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
