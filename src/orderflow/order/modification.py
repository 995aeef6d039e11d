"""Order item changes — commands and handler.

Items can only change while the order's status is modifiable; every change
reprices the whole order.
"""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from orderflow.configuration.lookup import ConfigurationLookup
from orderflow.domain import orderflow
from orderflow.order.order import Order, OrderLimits
from orderflow.pricing.engine import PricingEngine, PricingRules
from orderflow.workflow.registry import StatusRegistry


@orderflow.command(part_of="Order")
class AddOrderItem:
    order_id: Identifier(required=True)
    product_id: Identifier(required=True)
    product_name: String(required=True, max_length=255)
    sku: String(max_length=50)
    quantity: Integer(required=True)
    unit_price: Float(required=True)


@orderflow.command(part_of="Order")
class RemoveOrderItem:
    order_id: Identifier(required=True)
    item_id: Identifier(required=True)


@orderflow.command_handler(part_of=Order)
class ModifyOrderHandler:
    @handle(AddOrderItem)
    def add_item(self, command):
        lookup = ConfigurationLookup()
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        item = order.add_item(
            StatusRegistry(lookup=lookup).get_by_code(order.status),
            {
                "product_id": command.product_id,
                "product_name": command.product_name,
                "sku": command.sku,
                "quantity": command.quantity,
                "unit_price": command.unit_price,
            },
            PricingEngine(PricingRules.load(lookup)),
            OrderLimits.load(lookup),
        )
        repo.persist(order)
        return str(item.id)

    @handle(RemoveOrderItem)
    def remove_item(self, command):
        lookup = ConfigurationLookup()
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        order.remove_item(
            StatusRegistry(lookup=lookup).get_by_code(order.status),
            command.item_id,
            PricingEngine(PricingRules.load(lookup)),
        )
        repo.persist(order)
