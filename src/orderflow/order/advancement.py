"""Bulk status advancement — command and handler used by the batch job.

This path bypasses the transition executor: no edge, payment or reason
checks, no history entries, and no optimistic version check. A per-order
transition racing with a sweep can overwrite it or be overwritten by it.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.order.order import Order
from orderflow.workflow.registry import StatusRegistry

logger = structlog.get_logger(__name__)


@orderflow.command(part_of="Order")
class AdvanceOrders:
    """Move every order in ``source_status`` to ``target_status``."""

    source_status: String(required=True, max_length=50)
    target_status: String(required=True, max_length=50)


@orderflow.command_handler(part_of=Order)
class AdvanceOrdersHandler:
    @handle(AdvanceOrders)
    def advance(self, command):
        if command.source_status == command.target_status:
            raise ValidationError({"target_status": ["Source and target status must differ"]})

        registry = StatusRegistry()
        registry.get_by_code(command.source_status)
        target = registry.get_by_code(command.target_status)
        if not target.is_active:
            raise ValidationError({"target_status": [f"{target.code} is inactive"]})

        updated = current_domain.repository_for(Order).advance_status(command.source_status, command.target_status)

        logger.info(
            "Orders advanced in bulk",
            from_status=command.source_status,
            to_status=command.target_status,
            updated=updated,
        )
        return updated
