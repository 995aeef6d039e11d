"""Order status transition — command and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.order.order import Order
from orderflow.workflow.executor import TransitionExecutor


@orderflow.command(part_of="Order")
class TransitionOrderStatus:
    """Move one order to another workflow status through the executor's checks."""

    order_id: Identifier(required=True)
    target_status: String(required=True, max_length=50)
    changed_by: String(required=True, max_length=100)
    reason: String(max_length=500)
    actor_role: String(max_length=50)
    expected_version: Integer(min_value=1)
    is_automatic: Boolean(default=False)


@orderflow.command_handler(part_of=Order)
class TransitionOrderStatusHandler:
    @handle(TransitionOrderStatus)
    def transition(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ensure_version(command.expected_version)

        entry = TransitionExecutor().execute(
            order,
            command.target_status,
            actor=command.changed_by,
            reason=command.reason,
            actor_role=command.actor_role,
            is_automatic=command.is_automatic,
        )
        repo.persist(order)
        return {"order_id": str(order.id), "status": order.status, "sequence": entry.sequence, "version": order.version}
