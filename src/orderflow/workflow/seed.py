"""Seed the default order workflow and business-rule parameters.

Idempotent: anything already present (by status code, edge pair or
parameter key) is left as it is.
"""

import structlog
from protean.utils.globals import current_domain

from orderflow.configuration.defaults import DEFAULTS
from orderflow.configuration.parameter import ConfigurationParameter
from orderflow.workflow.cache import get_workflow_cache
from orderflow.workflow.status import OrderStatus
from orderflow.workflow.transition import StatusTransition

logger = structlog.get_logger(__name__)

_LOCKED = {"is_cancellable": False, "is_modifiable": False}

DEFAULT_STATUSES = [
    {
        "code": "PENDING",
        "name": "Pending",
        "description": "Order received and awaiting processing",
        "color_code": "#FFA500",
        "display_order": 1,
        "is_cancellable": True,
        "is_modifiable": True,
    },
    {
        "code": "PROCESSING",
        "name": "Processing",
        "description": "Order is being processed",
        "color_code": "#1E90FF",
        "display_order": 2,
        "is_cancellable": True,
        "is_modifiable": False,
        "triggers_inventory_reservation": True,
    },
    {
        "code": "CONFIRMED",
        "name": "Confirmed",
        "description": "Order confirmed and payment verified",
        "color_code": "#32CD32",
        "display_order": 3,
        "triggers_payment": True,
        **_LOCKED,
    },
    {
        "code": "PREPARING",
        "name": "Preparing",
        "description": "Order is being prepared for shipment",
        "color_code": "#4169E1",
        "display_order": 4,
        "triggers_shipping": True,
        **_LOCKED,
    },
    {
        "code": "SHIPPED",
        "name": "Shipped",
        "description": "Order has been shipped",
        "color_code": "#6A5ACD",
        "display_order": 5,
        "triggers_shipping": True,
        **_LOCKED,
    },
    # Not final, so delivered orders can still be completed
    {
        "code": "DELIVERED",
        "name": "Delivered",
        "description": "Order has been delivered",
        "color_code": "#228B22",
        "display_order": 6,
        **_LOCKED,
    },
    {
        "code": "COMPLETED",
        "name": "Completed",
        "description": "Order completed successfully",
        "color_code": "#008000",
        "display_order": 7,
        "is_final": True,
        **_LOCKED,
    },
    {
        "code": "CANCELLED",
        "name": "Cancelled",
        "description": "Order has been cancelled",
        "color_code": "#DC143C",
        "display_order": 8,
        "is_final": True,
        **_LOCKED,
    },
]

# from, to, description, display order, extra guards
DEFAULT_TRANSITIONS = [
    ("PENDING", "PROCESSING", "Begin order processing", 1, {}),
    ("PENDING", "CANCELLED", "Cancel pending order", 2, {}),
    ("PROCESSING", "CONFIRMED", "Confirm order and payment", 1, {"requires_payment": True}),
    ("PROCESSING", "CANCELLED", "Cancel during processing", 2, {}),
    ("CONFIRMED", "PREPARING", "Start preparing order", 1, {"requires_inventory_check": True}),
    ("CONFIRMED", "CANCELLED", "Cancel confirmed order", 2, {}),
    ("PREPARING", "SHIPPED", "Ship the order", 1, {}),
    ("SHIPPED", "DELIVERED", "Mark as delivered", 1, {}),
    ("DELIVERED", "COMPLETED", "Complete the order", 1, {}),
]

CANCELLED = "CANCELLED"


def seed_statuses():
    repo = current_domain.repository_for(OrderStatus)
    created = 0
    for definition in DEFAULT_STATUSES:
        settings = dict(definition)
        code = settings.pop("code")
        if repo._dao.query.filter(code=code).all().first is not None:
            continue
        repo.add(OrderStatus.create(code, **settings))
        created += 1
    return created


def seed_transitions():
    repo = current_domain.repository_for(StatusTransition)
    created = 0
    for from_code, to_code, description, display_order, guards in DEFAULT_TRANSITIONS:
        if repo._dao.query.filter(from_status=from_code, to_status=to_code).all().first is not None:
            continue
        repo.add(
            StatusTransition.create(
                from_code,
                to_code,
                description=description,
                display_order=display_order,
                requires_reason=to_code == CANCELLED,
                **guards,
            )
        )
        created += 1
    return created


def seed_parameters():
    repo = current_domain.repository_for(ConfigurationParameter)
    created = 0
    for key, (value, param_type, category, description) in DEFAULTS.items():
        if repo._dao.query.filter(param_key=key).all().first is not None:
            continue
        repo.add(
            ConfigurationParameter.register(
                key,
                value,
                param_type,
                category=category,
                description=description,
            )
        )
        created += 1
    return created


def seed_workflow():
    """Create the default statuses, transitions and parameters that are missing."""
    statuses = seed_statuses()
    transitions = seed_transitions()
    parameters = seed_parameters()
    get_workflow_cache().clear()

    logger.info(
        "Workflow seeded",
        statuses_created=statuses,
        transitions_created=transitions,
        parameters_created=parameters,
    )
    return {"statuses": statuses, "transitions": transitions, "parameters": parameters}
