"""
Bakeplan API ViewSets.

Every write delegates to the engine (bakeplan.production); engine errors map
to HTTP statuses in ProductionErrorMixin:

    NotFound          -> 404
    BadRequest        -> 400
    TransactionFailed -> 409

Error body: {"error": {"code": "...", ...details}}
"""

from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from bakeplan.exceptions import BadRequest, NotFound, ProductionError, TransactionFailed
from bakeplan.models import ConsumptionTracking, InventoryItem, ProductionSchedule
from bakeplan.service import Bakeplan
from bakeplan.services.consumption import ConsumptionRecalculationJob

from .serializers import (
    ConsumptionTrackingSerializer,
    DeductionSerializer,
    InventoryShortageSerializer,
    ProductionItemCancelSerializer,
    ProductionItemCompleteSerializer,
    ProductionItemPatchSerializer,
    ProductionItemSerializer,
    ProductionScheduleSerializer,
    ScheduleCreateSerializer,
    ScheduleFromOrderSerializer,
    ScheduleUpdateSerializer,
)

ITEM_PATH = r"items/(?P<item_id>\d+)"


class ProductionErrorMixin:
    """Render engine errors as JSON with a matching status code."""

    error_statuses = (
        (NotFound, status.HTTP_404_NOT_FOUND),
        (BadRequest, status.HTTP_400_BAD_REQUEST),
        (TransactionFailed, status.HTTP_409_CONFLICT),
    )

    def handle_exception(self, exc):
        if isinstance(exc, ProductionError):
            for error_class, http_status in self.error_statuses:
                if isinstance(exc, error_class):
                    break
            else:
                http_status = status.HTTP_400_BAD_REQUEST
            return Response({"error": exc.as_dict()}, status=http_status)
        return super().handle_exception(exc)


class ProductionScheduleViewSet(ProductionErrorMixin, viewsets.GenericViewSet):
    """
    ViewSet for ProductionSchedule.

    list: Schedules in an optional date range (?start_date=&end_date=)
    create: Create a schedule (response includes inventory warnings)
    retrieve: Get a schedule with its items
    update / partial_update: Change date/notes, optionally replace items
    destroy: Delete a schedule and its items
    from_order: Create a schedule from an internal or customer order
    update_item / start_item / complete_item / cancel_item: item lifecycle
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"
    queryset = ProductionSchedule.objects.prefetch_related("items")
    serializer_class = ProductionScheduleSerializer

    def _schedule_response(self, result, http_status=status.HTTP_200_OK):
        data = ProductionScheduleSerializer(Bakeplan.get_schedule(result.schedule.pk)).data
        data["warnings"] = InventoryShortageSerializer(result.warnings, many=True).data
        return Response(data, status=http_status)

    def _item_response(self, result):
        data = ProductionItemSerializer(result.item).data
        data["deductions"] = DeductionSerializer(result.deductions, many=True).data
        data["cascaded_status"] = result.cascaded_status
        return Response(data)

    def _created_by(self, request, value):
        return value or request.user.get_username()

    def list(self, request):
        """
        GET /schedules/?start_date=2025-01-01&end_date=2025-01-31
        """
        dates = {}
        for param in ("start_date", "end_date"):
            raw = request.query_params.get(param)
            if raw:
                try:
                    dates[param] = serializers.DateField().to_internal_value(raw)
                except serializers.ValidationError:
                    raise BadRequest("INVALID_DATE", **{param: raw})

        schedules = Bakeplan.list_schedules(dates.get("start_date"), dates.get("end_date"))
        return Response(ProductionScheduleSerializer(schedules, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(ProductionScheduleSerializer(Bakeplan.get_schedule(pk)).data)

    def create(self, request):
        """
        POST /schedules/
        {
            "date": "2025-01-24",
            "items": [{"recipe_id": 1, "quantity": 10}]
        }
        """
        serializer = ScheduleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = Bakeplan.create_schedule(
            date=data["date"],
            items=[dict(item) for item in data["items"]],
            notes=data["notes"],
            created_by=self._created_by(request, data["created_by"]),
        )
        return self._schedule_response(result, status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        serializer = ScheduleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        items = data.get("items")
        result = Bakeplan.update_schedule(
            pk,
            date=data.get("date"),
            notes=data.get("notes"),
            items=[dict(item) for item in items] if items is not None else None,
        )
        return self._schedule_response(result)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        Bakeplan.delete_schedule(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], url_path="from-order")
    def from_order(self, request):
        """
        Create a schedule from an order.

        POST /schedules/from-order/
        {
            "order_id": 12,
            "order_kind": "customer",
            "scheduled_date": "2025-01-24"
        }
        """
        serializer = ScheduleFromOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = Bakeplan.create_schedule_from_order(
            data["order_id"],
            data["scheduled_date"],
            data["order_kind"],
            created_by=self._created_by(request, data["created_by"]),
        )
        return self._schedule_response(result, status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path=ITEM_PATH)
    def update_item(self, request, pk=None, item_id=None):
        """
        Patch a production item.

        PATCH /schedules/{pk}/items/{item_id}/
        {
            "status": "completed",
            "quality_check": true
        }
        """
        serializer = ProductionItemPatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = Bakeplan.update_production_item(
            int(item_id), schedule_id=int(pk), **serializer.validated_data
        )
        return self._item_response(result)

    @action(detail=True, methods=["post"], url_path=rf"{ITEM_PATH}/start")
    def start_item(self, request, pk=None, item_id=None):
        """POST /schedules/{pk}/items/{item_id}/start/"""
        self._check_item(pk, item_id)
        return self._item_response(Bakeplan.start_production(int(item_id)))

    @action(detail=True, methods=["post"], url_path=rf"{ITEM_PATH}/complete")
    def complete_item(self, request, pk=None, item_id=None):
        """
        Complete a production item (deducts inventory).

        POST /schedules/{pk}/items/{item_id}/complete/
        {
            "quality_check": true,
            "quality_notes": "Golden crust"
        }
        """
        serializer = ProductionItemCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self._check_item(pk, item_id)

        result = Bakeplan.complete_production(
            int(item_id),
            quality_check=serializer.validated_data["quality_check"],
            quality_notes=serializer.validated_data.get("quality_notes"),
        )
        return self._item_response(result)

    @action(detail=True, methods=["post"], url_path=rf"{ITEM_PATH}/cancel")
    def cancel_item(self, request, pk=None, item_id=None):
        """POST /schedules/{pk}/items/{item_id}/cancel/ {"reason": "..."}"""
        serializer = ProductionItemCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self._check_item(pk, item_id)

        result = Bakeplan.cancel_production(int(item_id), reason=serializer.validated_data["reason"])
        return self._item_response(result)

    def _check_item(self, pk, item_id):
        schedule = Bakeplan.get_schedule(pk)
        if not schedule.items.filter(pk=item_id).exists():
            raise NotFound("ITEM_NOT_FOUND", item_id=int(item_id), schedule_id=schedule.pk)


class ConsumptionViewSet(ProductionErrorMixin, viewsets.ViewSet):
    """
    Consumption analytics per inventory item.

    retrieve: Tracking row with days of supply and stockout prediction
    recalculate: Recompute the tracking row now
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def _inventory_item(self, pk):
        item = InventoryItem.objects.filter(pk=pk).first()
        if item is None:
            raise NotFound("INVENTORY_ITEM_NOT_FOUND", inventory_item_id=pk)
        return item

    def retrieve(self, request, pk=None):
        """GET /consumption/{inventory_item_id}/"""
        item = self._inventory_item(pk)
        tracking = ConsumptionTracking.objects.filter(inventory_item_id=item.pk).first()
        if tracking is None:
            raise NotFound("TRACKING_NOT_FOUND", inventory_item_id=item.pk)

        serializer = ConsumptionTrackingSerializer(tracking, context={"inventory_item": item})
        return Response(serializer.data)

    @action(detail=True, methods=["post"])
    def recalculate(self, request, pk=None):
        """POST /consumption/{inventory_item_id}/recalculate/"""
        item = self._inventory_item(pk)
        tracking = ConsumptionRecalculationJob.recalculate(item.pk)

        serializer = ConsumptionTrackingSerializer(tracking, context={"inventory_item": item})
        return Response(serializer.data)
