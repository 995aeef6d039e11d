"""Transition rule table — which moves between statuses are permitted."""

import structlog
from protean.utils.globals import current_domain

from orderflow.workflow.cache import EDGES, get_workflow_cache
from orderflow.workflow.registry import StatusRegistry
from orderflow.workflow.transition import StatusTransition

logger = structlog.get_logger(__name__)


def _code(status):
    return status if isinstance(status, str) or status is None else status.code


class TransitionRules:
    def __init__(self, registry=None, cache=None):
        self.cache = cache if cache is not None else get_workflow_cache()
        self.registry = registry if registry is not None else StatusRegistry(cache=self.cache)

    def _edges_from(self, from_code):
        edges = self.cache.get(EDGES, from_code)
        if edges is None:
            repo = current_domain.repository_for(StatusTransition)
            edges = repo._dao.query.filter(from_status=from_code).all().items
            edges = sorted(edges, key=lambda e: (e.display_order, e.to_status))
            self.cache.put(EDGES, from_code, edges)
        return edges

    def find_edge(self, from_status, to_status):
        """The edge between the two statuses (allowed or not), or None."""
        to_code = _code(to_status)
        return next((e for e in self._edges_from(_code(from_status)) if e.to_status == to_code), None)

    def list_outbound_edges(self, from_status):
        """Allowed edges leaving ``from_status``, in display order."""
        return [e for e in self._edges_from(_code(from_status)) if e.is_allowed]

    def is_transition_allowed(self, from_status, to_status) -> bool:
        source = self.registry.find_by_code(_code(from_status))
        target = self.registry.find_by_code(_code(to_status))
        if source is None or target is None:
            return False
        # A final status never has a way out, whatever the table says
        if source.is_final:
            return False
        if not target.is_active:
            return False
        edge = self.find_edge(source.code, target.code)
        return bool(edge is not None and edge.is_allowed)

    def invalidate(self, from_code):
        self.cache.invalidate(EDGES, from_code)
        logger.debug("Transition cache invalidated", from_status=from_code)
