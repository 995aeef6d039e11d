"""Read helpers for orders and the workflow around them."""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from orderflow.order.order import Order
from orderflow.workflow.rules import TransitionRules

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def get_order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def get_order_by_number(order_number):
    order = current_domain.repository_for(Order).get_by_number(order_number)
    if order is None:
        raise ObjectNotFoundError({"order_number": [f"Order not found: {order_number}"]})
    return order


def _window(page, page_size):
    if page is None or page < 1:
        raise ValidationError({"page": [f"Page numbers start at 1, got {page}"]})
    if page_size is None or not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError({"page_size": [f"Page size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}"]})
    return (page - 1) * page_size, page_size


def list_orders(page=1, page_size=DEFAULT_PAGE_SIZE):
    """Page ``page`` (1-based) of every order, newest first."""
    offset, limit = _window(page, page_size)
    return current_domain.repository_for(Order).page(offset, limit)


def orders_in_status(status_code, page=1, page_size=DEFAULT_PAGE_SIZE):
    """Page ``page`` (1-based) of the orders currently in ``status_code``, newest first."""
    offset, limit = _window(page, page_size)
    return current_domain.repository_for(Order).page(offset, limit, status=status_code)


def next_statuses(order, rules=None):
    """Codes the order may move to from its current status, in display order."""
    rules = rules or TransitionRules()
    return [edge.to_status for edge in rules.list_outbound_edges(order.status)]
