"""Status registry — cached catalogue of workflow statuses."""

import structlog
from protean.utils.globals import current_domain

from orderflow.configuration.defaults import (
    ORDER_CANCELLED_STATUS,
    ORDER_COMPLETED_STATUS,
    ORDER_DEFAULT_STATUS,
    default_for,
)
from orderflow.configuration.lookup import ConfigurationLookup
from orderflow.shared.errors import UnknownStatus
from orderflow.workflow.cache import ACTIVE, STATUSES, get_workflow_cache
from orderflow.workflow.status import OrderStatus

logger = structlog.get_logger(__name__)


class StatusRegistry:
    def __init__(self, cache=None, lookup=None):
        self.cache = cache if cache is not None else get_workflow_cache()
        self.lookup = lookup if lookup is not None else ConfigurationLookup()

    def find_by_code(self, code):
        """The status registered under ``code``, or None."""
        if not code:
            return None
        status = self.cache.get(STATUSES, code)
        if status is not None:
            return status

        repo = current_domain.repository_for(OrderStatus)
        status = repo._dao.query.filter(code=code).all().first
        if status is not None:
            self.cache.put(STATUSES, code, status)
        return status

    def get_by_code(self, code):
        status = self.find_by_code(code)
        if status is None:
            raise UnknownStatus.for_code(code)
        return status

    def list_active(self):
        """Active statuses ordered by display order."""
        statuses = self.cache.get(ACTIVE, "all")
        if statuses is None:
            repo = current_domain.repository_for(OrderStatus)
            statuses = repo._dao.query.filter(is_active=True).all().items
            statuses = sorted(statuses, key=lambda s: (s.display_order, s.code))
            self.cache.put(ACTIVE, "all", statuses)
        return list(statuses)

    def list_all(self):
        repo = current_domain.repository_for(OrderStatus)
        return sorted(repo._dao.query.all().items, key=lambda s: (s.display_order, s.code))

    def default_code(self):
        return self.lookup.get_string(ORDER_DEFAULT_STATUS, default_for(ORDER_DEFAULT_STATUS))

    def cancelled_code(self):
        return self.lookup.get_string(ORDER_CANCELLED_STATUS, default_for(ORDER_CANCELLED_STATUS))

    def default_status(self):
        """The status new orders start in ("awaiting processing")."""
        return self.get_by_code(self.default_code())

    def completed_code(self):
        return self.lookup.get_string(ORDER_COMPLETED_STATUS, default_for(ORDER_COMPLETED_STATUS))

    def cancelled_status(self):
        return self.get_by_code(self.cancelled_code())

    def completed_status(self):
        """The status a fulfilled order finishes in."""
        return self.get_by_code(self.completed_code())

    def invalidate(self, code):
        self.cache.invalidate(STATUSES, code)
        self.cache.invalidate(ACTIVE)
        logger.debug("Status cache invalidated", code=code)
