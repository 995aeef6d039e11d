"""StatusTransition aggregate — a directed, guarded edge between two statuses.

A missing edge means the move is forbidden. Guard flags on the edge tell the
transition executor what must hold before the move is applied.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String

from orderflow.domain import orderflow
from orderflow.workflow.events import TransitionCreated, TransitionUpdated

UPDATABLE_FIELDS = (
    "is_allowed",
    "requires_approval",
    "requires_payment",
    "requires_inventory_check",
    "requires_reason",
    "required_role",
    "description",
    "display_order",
)


@orderflow.aggregate
class StatusTransition:
    from_status = String(required=True, max_length=50)
    to_status = String(required=True, max_length=50)
    is_allowed = Boolean(default=True)
    requires_approval = Boolean(default=False)
    requires_payment = Boolean(default=False)
    requires_inventory_check = Boolean(default=False)
    requires_reason = Boolean(default=False)
    required_role = String(max_length=50)
    description = String(max_length=500)
    display_order = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def edge_must_not_loop(self):
        if self.from_status == self.to_status:
            raise ValidationError({"to_status": [f"A status cannot transition to itself: {self.to_status}"]})

    @classmethod
    def create(cls, from_status, to_status, **guards):
        now = datetime.now(UTC)
        edge = cls(
            from_status=from_status,
            to_status=to_status,
            created_at=now,
            updated_at=now,
            **guards,
        )
        edge.raise_(
            TransitionCreated(
                transition_id=str(edge.id),
                from_status=edge.from_status,
                to_status=edge.to_status,
                is_allowed=edge.is_allowed,
                created_at=now,
            )
        )
        return edge

    def permits_role(self, actor_role) -> bool:
        """True unless the edge names a role and a different one is presented."""
        if not self.required_role or actor_role is None:
            return True
        return actor_role == self.required_role

    def update_guards(self, **changes):
        changed = []
        for field_name in UPDATABLE_FIELDS:
            value = changes.get(field_name)
            if value is None or getattr(self, field_name) == value:
                continue
            setattr(self, field_name, value)
            changed.append(field_name)

        if not changed:
            return changed

        self.updated_at = datetime.now(UTC)
        self.raise_(
            TransitionUpdated(
                transition_id=str(self.id),
                from_status=self.from_status,
                to_status=self.to_status,
                changed_fields=",".join(changed),
                is_allowed=self.is_allowed,
                updated_at=self.updated_at,
            )
        )
        return changed
