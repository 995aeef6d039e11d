"""Repository for the Order aggregate."""

from datetime import UTC, datetime

import structlog
from protean.utils.query import Q

from orderflow.domain import orderflow
from orderflow.order.order import Order
from orderflow.shared.errors import OptimisticConflict

logger = structlog.get_logger(__name__)


@orderflow.repository(part_of=Order)
class OrderRepository:
    """Order persistence with an explicit optimistic version check.

    ``persist`` is the only write path for per-order changes. The batch
    ``advance_status`` sweep deliberately goes around it.

    Both conditional writes go through the provider DAO's criteria update,
    which touches only the named columns and leaves protean's own aggregate
    version alone.
    """

    def persist(self, order: Order) -> Order:
        """Save ``order`` if nobody else has written it since it was read.

        The stored row's version is claimed with a conditional update; a
        claim that matches nothing on an existing row means a concurrent
        writer got there first.
        """
        expected = order.version
        claimed = self._dao._update_all(Q(id=order.id) & Q(version=expected), version=expected + 1)

        if not claimed:
            if self._dao.query.filter(id=order.id).all().first is not None:
                logger.info(
                    "Optimistic version conflict",
                    order_id=str(order.id),
                    expected_version=expected,
                )
                raise OptimisticConflict(f"Order {order.id} was modified concurrently (expected version {expected})")
            # First save of a new order
            self.add(order)
            return order

        order.version = expected + 1
        self.add(order)
        return order

    def get_by_number(self, order_number: str) -> Order | None:
        """Find an Order by its order number."""
        return self._dao.query.filter(order_number=order_number).all().first

    def find_by_status(self, status: str) -> list[Order]:
        """Orders currently in ``status``."""
        return self._dao.query.filter(status=status).all().items

    def advance_status(self, source: str, target: str) -> int:
        """Move every order in ``source`` to ``target`` in one bulk update.

        Per-order versions are neither checked nor bumped and no history is
        written. Returns the number of orders updated.
        """
        return self._dao._update_all(Q(status=source), status=target, updated_at=datetime.now(UTC))

    def page(self, offset: int, limit: int, **filters):
        """One window of orders, newest first, as protean's ResultSet (``items``, ``total``, ``has_next``)."""
        query = self._dao.query
        if filters:
            query = query.filter(**filters)
        return query.order_by("-created_at").offset(offset).limit(limit).all()
