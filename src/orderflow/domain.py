"""Orderflow bounded context — order lifecycle, pricing and status workflow.

Statuses and the transitions between them are data (the OrderStatus and
StatusTransition aggregates), so the order workflow can be reshaped at
runtime without a redeploy. Orders are plain CQRS aggregates persisted
with an explicit optimistic version, priced on every mutation, and swept
forward in bulk by the batch advancement job.
"""

import structlog
from protean.domain import Domain

from orderflow.utils.logging import configure_logging

configure_logging()

orderflow = Domain(name="orderflow")

logger = structlog.get_logger(__name__)
