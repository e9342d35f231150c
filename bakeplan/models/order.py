"""
Order models and the order link.

Production only ever touches orders through status transitions; everything
else about them (pricing, customers, delivery) lives elsewhere.

OrderLink = which order (internal or customer) a production item serves.
"""

from dataclasses import dataclass

from django.db import models
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords


class OrderKind(models.TextChoices):
    """The two parallel order kinds sharing the same linkage shape."""

    INTERNAL = "internal", _("Internal order")
    CUSTOMER = "customer", _("Customer order")


@dataclass(frozen=True)
class OrderLink:
    """
    Tagged link from a production item to the order it serves.

    Exactly one kind per link; "no link" is represented by None.
    """

    kind: OrderKind
    order_id: int

    def __post_init__(self):
        # Accept plain strings ("customer") as well as OrderKind members
        object.__setattr__(self, "kind", OrderKind(self.kind))

    @classmethod
    def internal(cls, order_id: int) -> "OrderLink":
        return cls(OrderKind.INTERNAL, order_id)

    @classmethod
    def customer(cls, order_id: int) -> "OrderLink":
        return cls(OrderKind.CUSTOMER, order_id)

    def __str__(self) -> str:
        return f"{self.kind}:{self.order_id}"


class InternalOrderStatus(models.TextChoices):
    """Internal order lifecycle status."""

    DRAFT = "draft", _("Draft")
    REQUESTED = "requested", _("Requested")
    APPROVED = "approved", _("Approved")
    SCHEDULED = "scheduled", _("Scheduled")
    IN_PRODUCTION = "in_production", _("In production")
    QUALITY_CHECK = "quality_check", _("Quality check")
    READY = "ready", _("Ready")
    COMPLETED = "completed", _("Completed")
    DELIVERED = "delivered", _("Delivered")
    CANCELLED = "cancelled", _("Cancelled")


class CustomerOrderStatus(models.TextChoices):
    """Customer order lifecycle status."""

    DRAFT = "draft", _("Draft")
    PENDING = "pending", _("Pending")
    CONFIRMED = "confirmed", _("Confirmed")
    READY = "ready", _("Ready")
    DELIVERED = "delivered", _("Delivered")
    CANCELLED = "cancelled", _("Cancelled")


class Product(models.Model):
    """Sold product; recipe-backed products can be scheduled for production."""

    sku = models.CharField(
        unique=True,
        max_length=50,
        verbose_name=_("SKU"),
    )
    name = models.CharField(
        max_length=200,
        verbose_name=_("Name"),
    )
    recipe = models.ForeignKey(
        "bakeplan.Recipe",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
        verbose_name=_("Recipe"),
    )
    is_active = models.BooleanField(default=True, verbose_name=_("Active"))

    class Meta:
        db_table = "bakeplan_product"
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class InternalOrder(models.Model):
    """Order placed by another part of the business (cafe, catering...)."""

    order_number = models.CharField(
        unique=True,
        max_length=50,
        verbose_name=_("Order number"),
    )
    status = models.CharField(
        max_length=20,
        choices=InternalOrderStatus.choices,
        default=InternalOrderStatus.REQUESTED,
        db_index=True,
        verbose_name=_("Status"),
    )
    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("Completed at"),
    )
    notes = models.TextField(blank=True, verbose_name=_("Notes"))

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    history = HistoricalRecords()

    class Meta:
        db_table = "bakeplan_internal_order"
        verbose_name = _("Internal order")
        verbose_name_plural = _("Internal orders")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.order_number


class InternalOrderItem(models.Model):
    order = models.ForeignKey(
        InternalOrder,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name=_("Order"),
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="+",
        verbose_name=_("Product"),
    )
    quantity = models.PositiveIntegerField(verbose_name=_("Quantity"))
    special_instructions = models.TextField(
        blank=True,
        verbose_name=_("Special instructions"),
    )

    class Meta:
        db_table = "bakeplan_internal_order_item"
        verbose_name = _("Internal order item")
        verbose_name_plural = _("Internal order items")
        ordering = ["order", "id"]

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity}"


class CustomerOrder(models.Model):
    """Order placed by a customer; ready once produced, delivered later."""

    order_number = models.CharField(
        unique=True,
        max_length=50,
        verbose_name=_("Order number"),
    )
    customer_name = models.CharField(
        max_length=200,
        blank=True,
        verbose_name=_("Customer"),
    )
    status = models.CharField(
        max_length=20,
        choices=CustomerOrderStatus.choices,
        default=CustomerOrderStatus.PENDING,
        db_index=True,
        verbose_name=_("Status"),
    )
    notes = models.TextField(blank=True, verbose_name=_("Notes"))

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    history = HistoricalRecords()

    class Meta:
        db_table = "bakeplan_customer_order"
        verbose_name = _("Customer order")
        verbose_name_plural = _("Customer orders")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.order_number


class CustomerOrderItem(models.Model):
    order = models.ForeignKey(
        CustomerOrder,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name=_("Order"),
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="+",
        verbose_name=_("Product"),
    )
    quantity = models.PositiveIntegerField(verbose_name=_("Quantity"))
    special_instructions = models.TextField(
        blank=True,
        verbose_name=_("Special instructions"),
    )

    class Meta:
        db_table = "bakeplan_customer_order_item"
        verbose_name = _("Customer order item")
        verbose_name_plural = _("Customer order items")
        ordering = ["order", "id"]

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity}"
