"""Order cancellation — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.order.order import Order
from orderflow.workflow.executor import TransitionExecutor

logger = structlog.get_logger(__name__)


@orderflow.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    cancelled_by = String(required=True, max_length=100)
    expected_version = Integer(min_value=1)


@orderflow.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ensure_version(command.expected_version)

        executor = TransitionExecutor()
        order.cancel(
            executor.registry.get_by_code(order.status),
            reason=command.reason,
            cancelled_by=command.cancelled_by,
            executor=executor,
        )
        repo.persist(order)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            cancelled_by=command.cancelled_by,
            reason=command.reason,
        )
        return str(order.id)
