"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from orderflow.domain import orderflow


@orderflow.event(part_of="Order")
class OrderCreated:
    """A new order was placed and priced."""

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=30)
    customer_id = Identifier(required=True)
    customer_type = String(max_length=20)
    status = String(required=True, max_length=50)
    item_count = Integer(required=True)
    final_amount = Float(required=True)
    currency = String(max_length=3, default="USD")
    created_at = DateTime(required=True)


@orderflow.event(part_of="Order")
class OrderItemAdded:
    """A line item was added and the order repriced."""

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    final_amount = Float(required=True)  # Order total after repricing


@orderflow.event(part_of="Order")
class OrderItemRemoved:
    """A line item was removed and the order repriced."""

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    final_amount = Float(required=True)


@orderflow.event(part_of="Order")
class OrderStatusChanged:
    """The order moved from one workflow status to another."""

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=30)
    from_status = String(max_length=50)
    to_status = String(required=True, max_length=50)
    changed_by = String(required=True, max_length=100)
    reason = String(max_length=500)
    is_automatic = Boolean(default=False)
    changed_at = DateTime(required=True)


@orderflow.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled. Always follows an OrderStatusChanged into the cancelled status."""

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=30)
    from_status = String(max_length=50)
    reason = String(required=True, max_length=500)
    cancelled_by = String(required=True, max_length=100)
    cancelled_at = DateTime(required=True)
