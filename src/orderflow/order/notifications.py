"""Forwards order lifecycle events to the external event sink.

Delivery is fire-and-forget. A sink failure is logged and dropped; it never
undoes the order change that raised the event.
"""

import structlog
from protean.utils.mixins import handle

from orderflow.domain import orderflow
from orderflow.order.events import OrderCancelled, OrderCreated, OrderStatusChanged
from orderflow.order.order import Order
from orderflow.sink import get_event_sink

logger = structlog.get_logger(__name__)


def _publish(name, payload):
    try:
        get_event_sink().publish(name, payload)
    except Exception as exc:
        logger.error(
            "Event sink publish failed",
            notification=name,
            order_id=payload.get("order_id"),
            error=str(exc),
        )
        return False
    return True


@orderflow.event_handler(part_of=Order)
class OrderNotificationsHandler:
    """Publishes OrderCreated, StatusChanged and OrderCancelled notifications."""

    @handle(OrderCreated)
    def on_order_created(self, event: OrderCreated) -> None:
        _publish(
            "OrderCreated",
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "customer_id": str(event.customer_id),
                "status": event.status,
                "final_amount": event.final_amount,
                "currency": event.currency or "USD",
            },
        )

    @handle(OrderStatusChanged)
    def on_status_changed(self, event: OrderStatusChanged) -> None:
        _publish(
            "StatusChanged",
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "from_status": event.from_status,
                "to_status": event.to_status,
                "changed_by": event.changed_by,
            },
        )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        _publish(
            "OrderCancelled",
            {
                "order_id": str(event.order_id),
                "reason": event.reason,
            },
        )
