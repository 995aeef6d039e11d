"""Workflow administration — create and update statuses and transitions.

Cached statuses and edges are dropped by event handlers on the status and
transition events. Sync event processing runs them after the unit of work
commits, so a row re-cached by another reader while the change was still in
flight does not survive it.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Integer, String
from protean.utils.globals import current_domain

from orderflow.domain import orderflow
from orderflow.order.order import Order
from orderflow.shared.errors import UnknownStatus
from orderflow.workflow.events import StatusCreated, StatusUpdated, TransitionCreated, TransitionUpdated
from orderflow.workflow.registry import StatusRegistry
from orderflow.workflow.rules import TransitionRules
from orderflow.workflow.status import OrderStatus
from orderflow.workflow.transition import StatusTransition

logger = structlog.get_logger(__name__)

_STATUS_FLAGS = (
    "name",
    "description",
    "color_code",
    "display_order",
    "is_final",
    "is_cancellable",
    "is_modifiable",
    "triggers_payment",
    "triggers_inventory_reservation",
    "triggers_shipping",
    "sends_notification",
    "is_active",
)

_EDGE_GUARDS = (
    "is_allowed",
    "requires_approval",
    "requires_payment",
    "requires_inventory_check",
    "requires_reason",
    "required_role",
    "description",
    "display_order",
)


def _provided(command, field_names):
    return {name: getattr(command, name) for name in field_names if getattr(command, name) is not None}


@orderflow.command(part_of="OrderStatus")
class CreateStatus:
    code: String(required=True, max_length=50)
    name: String(max_length=100)
    description: String(max_length=500)
    color_code: String(max_length=7)
    display_order: Integer(min_value=0)
    is_final: Boolean()
    is_cancellable: Boolean()
    is_modifiable: Boolean()
    triggers_payment: Boolean()
    triggers_inventory_reservation: Boolean()
    triggers_shipping: Boolean()
    sends_notification: Boolean()
    is_active: Boolean()


@orderflow.command(part_of="OrderStatus")
class UpdateStatus:
    """Change a status's flags. Fields left unset keep their current value."""

    code: String(required=True, max_length=50)
    name: String(max_length=100)
    description: String(max_length=500)
    color_code: String(max_length=7)
    display_order: Integer(min_value=0)
    is_final: Boolean()
    is_cancellable: Boolean()
    is_modifiable: Boolean()
    triggers_payment: Boolean()
    triggers_inventory_reservation: Boolean()
    triggers_shipping: Boolean()
    sends_notification: Boolean()
    is_active: Boolean()


@orderflow.command(part_of="StatusTransition")
class CreateTransition:
    from_status: String(required=True, max_length=50)
    to_status: String(required=True, max_length=50)
    is_allowed: Boolean()
    requires_approval: Boolean()
    requires_payment: Boolean()
    requires_inventory_check: Boolean()
    requires_reason: Boolean()
    required_role: String(max_length=50)
    description: String(max_length=500)
    display_order: Integer(min_value=0)


@orderflow.command(part_of="StatusTransition")
class UpdateTransition:
    from_status: String(required=True, max_length=50)
    to_status: String(required=True, max_length=50)
    is_allowed: Boolean()
    requires_approval: Boolean()
    requires_payment: Boolean()
    requires_inventory_check: Boolean()
    requires_reason: Boolean()
    required_role: String(max_length=50)
    description: String(max_length=500)
    display_order: Integer(min_value=0)


@orderflow.command_handler(part_of=OrderStatus)
class StatusAdministrationHandler:
    @handle(CreateStatus)
    def create_status(self, command):
        repo = current_domain.repository_for(OrderStatus)
        if repo._dao.query.filter(code=command.code).all().first is not None:
            raise ValidationError({"code": [f"Status code already exists: {command.code}"]})

        status = OrderStatus.create(command.code, **_provided(command, _STATUS_FLAGS))
        repo.add(status)

        logger.info("Order status created", code=status.code, display_order=status.display_order)
        return str(status.id)

    @handle(UpdateStatus)
    def update_status(self, command):
        registry = StatusRegistry()
        repo = current_domain.repository_for(OrderStatus)
        status = repo._dao.query.filter(code=command.code).all().first
        if status is None:
            raise UnknownStatus.for_code(command.code)

        changes = _provided(command, _STATUS_FLAGS)
        if changes.get("is_active") is False and status.is_active:
            self._ensure_can_deactivate(status, registry)

        changed = status.update_settings(**changes)
        if changed:
            repo.add(status)

        logger.info("Order status updated", code=status.code, changed=changed)
        return str(status.id)

    def _ensure_can_deactivate(self, status, registry):
        if status.code == registry.default_code():
            raise ValidationError(
                {"is_active": [f"{status.code} is the entry status for new orders and cannot be deactivated"]}
            )
        orders = current_domain.repository_for(Order)
        if orders.find_by_status(status.code):
            raise ValidationError({"is_active": [f"Orders are still in {status.code}; it cannot be deactivated"]})


@orderflow.command_handler(part_of=StatusTransition)
class TransitionAdministrationHandler:
    @handle(CreateTransition)
    def create_transition(self, command):
        rules = TransitionRules()
        rules.registry.get_by_code(command.from_status)
        rules.registry.get_by_code(command.to_status)

        repo = current_domain.repository_for(StatusTransition)
        existing = (
            repo._dao.query.filter(from_status=command.from_status, to_status=command.to_status).all().first
        )
        if existing is not None:
            raise ValidationError(
                {"to_status": [f"Transition {command.from_status} -> {command.to_status} already exists"]}
            )

        edge = StatusTransition.create(command.from_status, command.to_status, **_provided(command, _EDGE_GUARDS))
        repo.add(edge)

        logger.info("Status transition created", from_status=edge.from_status, to_status=edge.to_status)
        return str(edge.id)

    @handle(UpdateTransition)
    def update_transition(self, command):
        repo = current_domain.repository_for(StatusTransition)
        edge = repo._dao.query.filter(from_status=command.from_status, to_status=command.to_status).all().first
        if edge is None:
            raise ValidationError(
                {"to_status": [f"Transition {command.from_status} -> {command.to_status} does not exist"]}
            )

        changed = edge.update_guards(**_provided(command, _EDGE_GUARDS))
        if changed:
            repo.add(edge)

        logger.info(
            "Status transition updated",
            from_status=edge.from_status,
            to_status=edge.to_status,
            changed=changed,
        )
        return str(edge.id)


@orderflow.event_handler(part_of=OrderStatus)
class StatusCacheInvalidation:
    """Drops a status, and the active listing, once its change is committed."""

    @handle(StatusCreated)
    def on_status_created(self, event: StatusCreated) -> None:
        StatusRegistry().invalidate(event.code)

    @handle(StatusUpdated)
    def on_status_updated(self, event: StatusUpdated) -> None:
        StatusRegistry().invalidate(event.code)


@orderflow.event_handler(part_of=StatusTransition)
class TransitionCacheInvalidation:
    """Drops the outbound edges of a source status once an edge change is committed."""

    @handle(TransitionCreated)
    def on_transition_created(self, event: TransitionCreated) -> None:
        TransitionRules().invalidate(event.from_status)

    @handle(TransitionUpdated)
    def on_transition_updated(self, event: TransitionUpdated) -> None:
        TransitionRules().invalidate(event.from_status)
