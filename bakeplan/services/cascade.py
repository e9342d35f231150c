"""
Order-completion cascade.

When the last production item of an order completes, or under
ignore_cancelled the last blocking one is cancelled, the order itself
advances: internal orders to ``completed`` (with a completion timestamp),
customer orders to ``ready`` since delivery is still pending.

Which sibling items count is a policy decision (BAKEPLAN CASCADE_POLICY):

    strict            every linked item must be completed; a cancelled or
                      still scheduled sibling blocks the order
    ignore_cancelled  cancelled siblings are disregarded, at least one
                      completed item is still required
"""

import logging

from django.db import transaction
from django.utils import timezone

from bakeplan.conf import CASCADE_IGNORE_CANCELLED, CASCADE_STRICT
from bakeplan.models import (
    CustomerOrderStatus,
    InternalOrderStatus,
    OrderKind,
    OrderLink,
    ProductionStatus,
)
from bakeplan.protocols.repositories import OrderRepository

logger = logging.getLogger(__name__)


CASCADE_TARGETS = {
    OrderKind.INTERNAL: InternalOrderStatus.COMPLETED,
    OrderKind.CUSTOMER: CustomerOrderStatus.READY,
}


def order_is_fulfilled(statuses: list[str], policy: str = CASCADE_STRICT) -> bool:
    """Evaluate the completion predicate over the statuses of linked items."""
    if policy == CASCADE_IGNORE_CANCELLED:
        statuses = [s for s in statuses if s != ProductionStatus.CANCELLED]

    if not statuses:
        return False

    return all(s == ProductionStatus.COMPLETED for s in statuses)


def cascade_order_completion(
    link: OrderLink,
    orders: OrderRepository,
    policy: str = CASCADE_STRICT,
) -> str | None:
    """
    Advance the linked order if all of its production items are done.

    The caller holds the order row lock (OrderRepository.lock_order), so
    the sibling statuses read here include every committed completion.

    Returns:
        The new order status, or None when the order was left unchanged
    """
    items = orders.get_items_by_order_link(link.order_id, link.kind)
    statuses = [item.status for item in items]

    if not order_is_fulfilled(statuses, policy):
        logger.debug(
            f"Order {link.kind}:{link.order_id} not fulfilled yet",
            extra={"order_id": link.order_id, "statuses": statuses, "policy": policy},
        )
        return None

    status = CASCADE_TARGETS[link.kind]
    completed_at = timezone.now() if link.kind == OrderKind.INTERNAL else None
    orders.set_order_status(link.order_id, link.kind, status, completed_at=completed_at)

    logger.info(
        f"Order {link.kind}:{link.order_id} cascaded to {status}",
        extra={
            "order_id": link.order_id,
            "order_kind": str(link.kind),
            "status": str(status),
            "items": len(items),
        },
    )

    from bakeplan.signals import order_cascaded

    transaction.on_commit(
        lambda: order_cascaded.send(sender=OrderLink, link=link, status=str(status))
    )

    return str(status)
