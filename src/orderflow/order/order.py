"""Order aggregate (CQRS) — items, computed totals and the status audit trail.

The order references its workflow status by code; what that status allows
(modification, cancellation) is decided by the OrderStatus the caller
resolves and passes in. Totals are recomputed from the items on every
mutation. The status history is append-only: entries are never reordered
or removed, and the only change ever made to an existing entry is the
``duration_seconds`` backfill when the next entry is appended.

The explicit ``version`` column is the optimistic lock checked and bumped by
``OrderRepository.persist``.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from uuid import uuid4

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from orderflow.configuration import defaults as keys
from orderflow.configuration.defaults import default_for
from orderflow.domain import orderflow
from orderflow.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderItemAdded,
    OrderItemRemoved,
    OrderStatusChanged,
)
from orderflow.pricing.engine import CustomerType
from orderflow.shared.errors import IllegalTransition, OptimisticConflict, ReasonRequired
from orderflow.shared.money import Money, to_decimal

ORDER_NUMBER_PATTERN = re.compile(r"^ORD-\d{8}-[0-9A-F]{8}$")

MIN_UNIT_PRICE = 0.01
MAX_UNIT_PRICE = 1_000_000.00


def generate_order_number(now=None):
    """``ORD-YYYYMMDD-XXXXXXXX`` with eight upper-case hex characters."""
    now = now or datetime.now(UTC)
    return f"ORD-{now:%Y%m%d}-{uuid4().hex[:8].upper()}"


def _aware(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True)
class OrderLimits:
    max_items: int
    max_quantity_per_item: int

    @classmethod
    def load(cls, lookup) -> "OrderLimits":
        return cls(
            max_items=int(lookup.get_integer(keys.ORDER_MAX_ITEMS, default_for(keys.ORDER_MAX_ITEMS))),
            max_quantity_per_item=int(
                lookup.get_integer(keys.ORDER_MAX_QUANTITY_PER_ITEM, default_for(keys.ORDER_MAX_QUANTITY_PER_ITEM))
            ),
        )

    @classmethod
    def defaults(cls) -> "OrderLimits":
        return cls(
            max_items=default_for(keys.ORDER_MAX_ITEMS),
            max_quantity_per_item=default_for(keys.ORDER_MAX_QUANTITY_PER_ITEM),
        )

    def check_quantity(self, quantity):
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if quantity > self.max_quantity_per_item:
            raise ValidationError(
                {"quantity": [f"Quantity {quantity} exceeds the maximum of {self.max_quantity_per_item} per item"]}
            )

    def check_item_count(self, count):
        if count < 1:
            raise ValidationError({"items": ["Order must have at least one item"]})
        if count > self.max_items:
            raise ValidationError({"items": [f"Order cannot have more than {self.max_items} items"]})


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@orderflow.value_object(part_of="Order")
class OrderPricing:
    """Order-level monetary breakdown.

    ``final_amount`` always equals ``subtotal - discount_total + tax_total +
    shipping_cost``.
    """

    subtotal = Float(default=0.0, min_value=0.0)
    discount_total = Float(default=0.0, min_value=0.0)
    tax_total = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    final_amount = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")

    @invariant.post
    def final_amount_must_balance(self):
        expected = (
            to_decimal(self.subtotal or 0)
            - to_decimal(self.discount_total or 0)
            + to_decimal(self.tax_total or 0)
            + to_decimal(self.shipping_cost or 0)
        )
        if to_decimal(self.final_amount or 0) != expected:
            raise ValidationError(
                {"final_amount": [f"Final amount {self.final_amount} does not balance (expected {expected})"]}
            )

    @classmethod
    def from_price(cls, price, currency="USD"):
        return cls(
            subtotal=float(price.subtotal),
            discount_total=float(price.discount),
            tax_total=float(price.tax),
            shipping_cost=float(price.shipping),
            final_amount=float(price.final_amount),
            currency=currency,
        )

    def money(self, field_name) -> Money:
        return Money.of(getattr(self, field_name) or 0, self.currency)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@orderflow.entity(part_of="Order")
class OrderItem:
    """A line item. The unit price is a snapshot taken when the line is added."""

    product_id = Identifier(required=True)
    sku = String(max_length=50)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=MIN_UNIT_PRICE, max_value=MAX_UNIT_PRICE)
    subtotal = Float(default=0.0)
    discount_amount = Float(default=0.0)
    tax_amount = Float(default=0.0)
    final_amount = Float(default=0.0)

    def line(self):
        return to_decimal(self.unit_price), self.quantity


@orderflow.entity(part_of="Order")
class StatusHistory:
    """One audit entry: the order moved from ``from_status`` to ``to_status``."""

    sequence = Integer(required=True, min_value=1)
    from_status = String(max_length=50)  # None for the entry written at creation
    to_status = String(required=True, max_length=50)
    changed_by = String(required=True, max_length=100)
    changed_at = DateTime(required=True)
    reason = String(max_length=500)
    duration_seconds = Integer(min_value=0)  # Time spent in to_status, set when the next entry lands
    is_automatic = Boolean(default=False)
    approval_required = Boolean(default=False)

    def close(self, next_changed_at):
        elapsed = _aware(next_changed_at) - _aware(self.changed_at)
        self.duration_seconds = max(0, int(elapsed.total_seconds()))


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@orderflow.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    customer_id = Identifier(required=True)
    customer_type = String(choices=CustomerType, default=CustomerType.RETAIL.value)
    status = String(required=True, max_length=50)
    is_priority = Boolean(default=False)
    currency = String(max_length=3, default="USD")
    items = HasMany(OrderItem)
    status_history = HasMany(StatusHistory)
    pricing = ValueObject(OrderPricing)
    loyalty_points = Integer(default=0, min_value=0)
    notes = String(max_length=1000)
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=100)
    cancelled_at = DateTime()
    version = Integer(default=1, min_value=1)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_number_must_match_format(self):
        if self.order_number and not ORDER_NUMBER_PATTERN.match(self.order_number):
            raise ValidationError({"order_number": [f"Invalid order number: {self.order_number}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_id,
        items_data,
        status,
        engine,
        limits=None,
        customer_type=CustomerType.RETAIL.value,
        is_priority=False,
        currency="USD",
        created_by="system",
        notes=None,
    ):
        """Create a priced order in ``status`` with its first history entry.

        Args:
            customer_id: The customer placing the order.
            items_data: List of dicts with product_id, product_name, quantity,
                        unit_price and optionally sku.
            status: Code of the initial workflow status.
            engine: PricingEngine used to price the order.
            limits: OrderLimits; defaults when omitted.
        """
        limits = limits or OrderLimits.defaults()
        if items_data is not None and not isinstance(items_data, list | tuple):
            raise ValidationError({"items": ["Items must be a list of item objects"]})
        items_data = list(items_data or [])
        limits.check_item_count(len(items_data))

        now = datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(now),
            customer_id=customer_id,
            customer_type=customer_type or CustomerType.RETAIL.value,
            status=status,
            is_priority=bool(is_priority),
            currency=(currency or "USD").upper(),
            notes=notes,
            version=1,
            created_at=now,
            updated_at=now,
        )

        for data in items_data:
            order.add_items(_build_item(data, limits))

        order.add_status_history(
            StatusHistory(
                sequence=1,
                from_status=None,
                to_status=status,
                changed_by=created_by or "system",
                changed_at=now,
                reason="Order created",
            )
        )
        order.recompute_totals(engine)

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(customer_id),
                customer_type=order.customer_type,
                status=status,
                item_count=len(order.items),
                final_amount=order.pricing.final_amount,
                currency=order.currency,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def recompute_totals(self, engine):
        """Reprice every line and the order as a whole from the current items."""
        for item in self.items:
            price = engine.price_item(item.unit_price, item.quantity, self.customer_type, self.currency)
            item.subtotal = float(price.subtotal)
            item.discount_amount = float(price.discount)
            item.tax_amount = float(price.tax)
            item.final_amount = float(price.final_amount)

        order_price = engine.price_order(
            [item.line() for item in self.items],
            self.customer_type,
            bool(self.is_priority),
            self.currency,
        )
        self.pricing = OrderPricing.from_price(order_price, self.currency)
        self.loyalty_points = engine.loyalty_points(order_price.final_amount)
        return self.pricing

    def final_amount(self) -> Money:
        if self.pricing is None:
            return Money.zero(self.currency)
        return self.pricing.money("final_amount")

    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def is_fully_paid(self, ledger) -> bool:
        """True when successful payments cover the final amount.

        Raises ValidationError if the ledger reports a different currency.
        """
        paid = ledger.successful_total(str(self.id), self.currency)
        return paid.at_least(self.final_amount())

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def _ensure_modifiable(self, current_status):
        if not current_status.allows_modification():
            raise ValidationError({"status": [f"Order cannot be modified in status {self.status}"]})

    def add_item(self, current_status, item_data, engine, limits=None):
        self._ensure_modifiable(current_status)
        limits = limits or OrderLimits.defaults()
        limits.check_item_count(len(self.items) + 1)

        item = _build_item(item_data, limits)
        self.add_items(item)
        self.updated_at = datetime.now(UTC)
        self.recompute_totals(engine)

        self.raise_(
            OrderItemAdded(
                order_id=str(self.id),
                item_id=str(item.id),
                product_id=str(item.product_id),
                quantity=item.quantity,
                unit_price=item.unit_price,
                final_amount=self.pricing.final_amount,
            )
        )
        return item

    def remove_item(self, current_status, item_id, engine):
        self._ensure_modifiable(current_status)

        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in order"]})
        if len(self.items) == 1:
            raise ValidationError({"items": ["Order must have at least one item"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.recompute_totals(engine)

        self.raise_(
            OrderItemRemoved(
                order_id=str(self.id),
                item_id=str(item_id),
                final_amount=self.pricing.final_amount,
            )
        )

    # -------------------------------------------------------------------
    # Status history
    # -------------------------------------------------------------------
    def history(self):
        """History entries in the order they were appended."""
        return sorted(self.status_history, key=lambda entry: entry.sequence)

    def timeline(self):
        """History entries newest first."""
        return list(reversed(self.history()))

    def record_status_change(
        self,
        to_status,
        changed_by,
        reason=None,
        is_automatic=False,
        approval_required=False,
        changed_at=None,
    ):
        """Move to ``to_status`` and append the audit entry. No rule checks happen here."""
        entries = self.history()
        previous = entries[-1] if entries else None

        changed_at = _aware(changed_at or datetime.now(UTC))
        if previous is not None and changed_at < _aware(previous.changed_at):
            changed_at = _aware(previous.changed_at)
        if previous is not None:
            previous.close(changed_at)

        from_status = self.status
        entry = StatusHistory(
            sequence=(previous.sequence + 1) if previous else 1,
            from_status=from_status,
            to_status=to_status,
            changed_by=changed_by,
            changed_at=changed_at,
            reason=reason,
            is_automatic=bool(is_automatic),
            approval_required=bool(approval_required),
        )
        self.add_status_history(entry)
        self.status = to_status
        self.updated_at = changed_at

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                from_status=from_status,
                to_status=to_status,
                changed_by=changed_by,
                reason=reason,
                is_automatic=bool(is_automatic),
                changed_at=changed_at,
            )
        )
        return entry

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def ensure_cancellable(self, current_status):
        if not current_status.allows_cancellation():
            raise IllegalTransition.between(
                self.status,
                "cancellation",
                detail=f"orders in status {self.status} cannot be cancelled",
            )

    def cancel(self, current_status, reason, cancelled_by, executor):
        """Cancel through the workflow, then stamp the cancellation details.

        ``executor`` moves the order into the configured cancelled status so
        the edge's own guards (reason required, role) still apply.
        """
        self.ensure_cancellable(current_status)
        if not reason or not reason.strip():
            raise ReasonRequired({"reason": ["A reason is required to cancel an order"]})

        from_status = self.status
        entry = executor.execute(self, executor.registry.cancelled_code(), actor=cancelled_by, reason=reason)

        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.cancelled_at = entry.changed_at

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                from_status=from_status,
                reason=reason,
                cancelled_by=cancelled_by,
                cancelled_at=entry.changed_at,
            )
        )
        return entry

    # -------------------------------------------------------------------
    # Concurrency
    # -------------------------------------------------------------------
    def ensure_version(self, expected_version):
        if expected_version is not None and expected_version != self.version:
            raise OptimisticConflict(
                f"Order {self.id} is at version {self.version}, expected {expected_version}"
            )


def _item_quantity(raw):
    """``raw`` as a whole number of units; anything else is a validation error."""
    invalid = ValidationError({"quantity": [f"Quantity must be a whole number, got {raw!r}"]})
    if raw is None:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})
    if isinstance(raw, bool) or not isinstance(raw, int | float | str | Decimal):
        raise invalid
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        raise invalid from None
    if not value.is_finite() or value != value.to_integral_value():
        raise invalid
    return int(value)


def _item_unit_price(raw):
    if raw is None:
        raise ValidationError({"unit_price": ["Unit price is required"]})
    invalid = ValidationError({"unit_price": [f"Unit price must be a number, got {raw!r}"]})
    if isinstance(raw, bool) or not isinstance(raw, int | float | str | Decimal):
        raise invalid
    try:
        price = to_decimal(raw)
    except InvalidOperation:
        raise invalid from None
    if not price.is_finite():
        raise invalid
    if price < Decimal(str(MIN_UNIT_PRICE)) or price > Decimal(str(MAX_UNIT_PRICE)):
        raise ValidationError(
            {"unit_price": [f"Unit price must be between {MIN_UNIT_PRICE:.2f} and {MAX_UNIT_PRICE:,.2f}"]}
        )
    return price


def _build_item(data, limits):
    if not isinstance(data, dict):
        raise ValidationError({"items": [f"Each item must be an object, got {type(data).__name__}"]})
    product_id = data.get("product_id")
    if product_id is None or not str(product_id).strip():
        raise ValidationError({"product_id": ["Product id is required"]})

    quantity = _item_quantity(data.get("quantity"))
    limits.check_quantity(quantity)
    price = _item_unit_price(data.get("unit_price"))
    return OrderItem(
        product_id=product_id,
        sku=data.get("sku"),
        product_name=data.get("product_name") or data.get("sku") or str(product_id),
        quantity=quantity,
        unit_price=float(price),
    )
