"""Order creation — command and handler."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from orderflow.configuration.lookup import ConfigurationLookup
from orderflow.domain import orderflow
from orderflow.order.order import Order, OrderLimits
from orderflow.pricing.engine import CustomerType, PricingEngine, PricingRules
from orderflow.workflow.registry import StatusRegistry

logger = structlog.get_logger(__name__)


def _parse_items(raw):
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError({"items": [f"Items are not valid JSON: {exc.msg}"]}) from None


@orderflow.command(part_of="Order")
class CreateOrder:
    customer_id = Identifier(required=True)
    customer_type = String(choices=CustomerType, default=CustomerType.RETAIL.value)
    items = Text(required=True)  # JSON: list of item dicts
    is_priority = Boolean(default=False)
    currency = String(max_length=3, default="USD")
    notes = String(max_length=1000)
    created_by = String(max_length=100, default="system")


@orderflow.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        items_data = _parse_items(command.items)

        lookup = ConfigurationLookup()
        registry = StatusRegistry(lookup=lookup)
        status = registry.default_status()

        order = Order.create(
            customer_id=command.customer_id,
            items_data=items_data,
            status=status.code,
            engine=PricingEngine(PricingRules.load(lookup)),
            limits=OrderLimits.load(lookup),
            customer_type=command.customer_type,
            is_priority=command.is_priority,
            currency=command.currency,
            created_by=command.created_by,
            notes=command.notes,
        )
        current_domain.repository_for(Order).persist(order)

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            final_amount=order.pricing.final_amount,
        )
        return str(order.id)
