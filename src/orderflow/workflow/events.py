"""Domain events for the OrderStatus and StatusTransition aggregates."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from orderflow.domain import orderflow


@orderflow.event(part_of="OrderStatus")
class StatusCreated:
    """A new status was added to the workflow."""

    status_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    display_order = Integer()
    is_final = Boolean()
    created_at = DateTime(required=True)


@orderflow.event(part_of="OrderStatus")
class StatusUpdated:
    """A status changed its flags or presentation. The code never changes."""

    status_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    changed_fields = String(max_length=500)  # Comma-separated field names
    is_active = Boolean()
    updated_at = DateTime(required=True)


@orderflow.event(part_of="StatusTransition")
class TransitionCreated:
    """A new edge was added between two statuses."""

    transition_id = Identifier(required=True)
    from_status = String(required=True, max_length=50)
    to_status = String(required=True, max_length=50)
    is_allowed = Boolean()
    created_at = DateTime(required=True)


@orderflow.event(part_of="StatusTransition")
class TransitionUpdated:
    """An edge's guard flags changed."""

    transition_id = Identifier(required=True)
    from_status = String(required=True, max_length=50)
    to_status = String(required=True, max_length=50)
    changed_fields = String(max_length=500)
    is_allowed = Boolean()
    updated_at = DateTime(required=True)
